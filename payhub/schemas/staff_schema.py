from marshmallow import Schema, fields, validate, post_load, EXCLUDE


class StaffSchema(Schema):
    """
    Staff create/update payload.

    Load with `partial=True` for updates. CSV import rows go through the
    same schema so a row is valid exactly when the equivalent POST would be.
    """
    class Meta:
        unknown = EXCLUDE

    name = fields.Str(
        required=True,
        validate=validate.Length(min=2, error="Name must be at least 2 characters"),
        error_messages={"required": "Name is required"}
    )
    email = fields.Email(required=True, error_messages={
        "required": "Email is required",
        "invalid": "Invalid email address"
    })
    employee_id = fields.Str(data_key='employeeId', allow_none=True)
    department = fields.Str(allow_none=True)
    position = fields.Str(allow_none=True)
    salary = fields.Float(
        allow_none=True,
        validate=validate.Range(min=0, min_inclusive=False, error="Salary must be positive"),
        error_messages={"invalid": "Salary must be a number"}
    )
    joined_date = fields.Date(data_key='joinedDate', allow_none=True,
                              error_messages={"invalid": "Joined date must be a YYYY-MM-DD date"})
    institution_id = fields.Str(data_key='institutionId', load_only=True)

    @post_load
    def normalize(self, data, **kwargs):
        if data.get('email'):
            data['email'] = data['email'].strip().lower()
        if data.get('name'):
            data['name'] = data['name'].strip()
        return data


class PayslipBriefSchema(Schema):
    id = fields.Str()
    month = fields.Str()
    year = fields.Int()
    net_pay = fields.Float(data_key='netPay')
    status = fields.Str()
    created_at = fields.DateTime(data_key='createdAt')


class StaffResponseSchema(Schema):
    id = fields.Str()
    institution_id = fields.Str(data_key='institutionId')
    user_id = fields.Str(data_key='userId', allow_none=True)
    name = fields.Str()
    email = fields.Email()
    employee_id = fields.Str(data_key='employeeId', allow_none=True)
    department = fields.Str(allow_none=True)
    position = fields.Str(allow_none=True)
    salary = fields.Float(allow_none=True)
    is_active = fields.Bool(data_key='isActive')
    joined_date = fields.Date(data_key='joinedDate', allow_none=True)
    created_at = fields.DateTime(data_key='createdAt')
    updated_at = fields.DateTime(data_key='updatedAt')
