from marshmallow import Schema, fields, validate, EXCLUDE


class InstitutionUpdateSchema(Schema):
    """Fields an institution admin (or super admin) may change."""
    class Meta:
        unknown = EXCLUDE

    name = fields.Str(validate=validate.Length(min=2, error="Name must be at least 2 characters"))
    phone_number = fields.Str(
        data_key='phoneNumber',
        validate=validate.Length(min=10, error="Phone number must be at least 10 characters")
    )
    address = fields.Str(allow_none=True)
    website = fields.Url(allow_none=True, error_messages={"invalid": "Invalid website URL"})
    logo = fields.Url(allow_none=True, error_messages={"invalid": "Invalid logo URL"})


class InstitutionResponseSchema(Schema):
    id = fields.Str()
    name = fields.Str()
    email = fields.Email()
    phone_number = fields.Str(data_key='phoneNumber', allow_none=True)
    address = fields.Str(allow_none=True)
    website = fields.Str(allow_none=True)
    logo = fields.Str(allow_none=True)
    is_active = fields.Bool(data_key='isActive')
    created_at = fields.DateTime(data_key='createdAt')
    updated_at = fields.DateTime(data_key='updatedAt')
