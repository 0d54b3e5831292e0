from marshmallow import Schema, fields, validate, validates_schema, post_load, EXCLUDE, ValidationError


class _RequestSchema(Schema):
    class Meta:
        unknown = EXCLUDE


def _email_field(**kwargs):
    return fields.Email(required=True, error_messages={
        "required": "Email is required",
        "invalid": "Invalid email address"
    }, **kwargs)


class LoginSchema(_RequestSchema):
    """
    Login Request Validation Schema

    Example:
        schema = LoginSchema()
        result = schema.load({"email": "admin@school.edu", "password": "secret"})
    """
    email = _email_field()
    password = fields.Str(required=True, validate=validate.Length(min=1, error="Password is required"),
                          error_messages={"required": "Password is required"})

    @post_load
    def normalize(self, data, **kwargs):
        data['email'] = data['email'].strip().lower()
        return data


class SignupSchema(_RequestSchema):
    """
    Institution Signup Validation Schema

    Validates the onboarding form:
    - Institution name at least 2 characters
    - Phone number at least 10 characters
    - Password at least 8 characters
    - confirmPassword, when sent, must equal password
    """
    institution_name = fields.Str(
        required=True,
        data_key='institutionName',
        validate=validate.Length(min=2, error="Institution name must be at least 2 characters"),
        error_messages={"required": "Institution name is required"}
    )
    email = _email_field()
    phone_number = fields.Str(
        required=True,
        data_key='phoneNumber',
        validate=validate.Length(min=10, error="Phone number must be at least 10 characters"),
        error_messages={"required": "Phone number is required"}
    )
    password = fields.Str(
        required=True,
        validate=validate.Length(min=8, error="Password must be at least 8 characters"),
        error_messages={"required": "Password is required"}
    )
    confirm_password = fields.Str(data_key='confirmPassword', load_default=None)

    @validates_schema
    def validate_passwords_match(self, data, **kwargs):
        confirm = data.get('confirm_password')
        if confirm and confirm != data.get('password'):
            raise ValidationError("Passwords don't match", field_name='confirmPassword')

    @post_load
    def normalize(self, data, **kwargs):
        data['email'] = data['email'].strip().lower()
        data['institution_name'] = data['institution_name'].strip()
        data.pop('confirm_password', None)
        return data


class SuperAdminSchema(_RequestSchema):
    email = _email_field()
    password = fields.Str(
        required=True,
        validate=validate.Length(min=8, error="Password must be at least 8 characters"),
        error_messages={"required": "Password is required"}
    )
    name = fields.Str(
        required=True,
        validate=validate.Length(min=2, error="Name must be at least 2 characters"),
        error_messages={"required": "Name is required"}
    )

    @post_load
    def normalize(self, data, **kwargs):
        data['email'] = data['email'].strip().lower()
        return data


class ChangePasswordSchema(_RequestSchema):
    current_password = fields.Str(
        required=True,
        data_key='currentPassword',
        validate=validate.Length(min=1, error="Current password is required"),
        error_messages={"required": "Current password is required"}
    )
    new_password = fields.Str(
        required=True,
        data_key='newPassword',
        validate=validate.Length(min=8, error="New password must be at least 8 characters"),
        error_messages={"required": "New password is required"}
    )
    confirm_password = fields.Str(required=True, data_key='confirmPassword',
                                  error_messages={"required": "Please confirm the new password"})

    @validates_schema
    def validate_passwords_match(self, data, **kwargs):
        if data.get('new_password') != data.get('confirm_password'):
            raise ValidationError("Passwords don't match", field_name='confirmPassword')


class StaffAccountSchema(_RequestSchema):
    password = fields.Str(
        required=True,
        validate=validate.Length(min=8, error="Password must be at least 8 characters"),
        error_messages={"required": "Password is required"}
    )


class InstitutionSummarySchema(Schema):
    id = fields.Str()
    name = fields.Str()
    email = fields.Email()
    is_active = fields.Bool(data_key='isActive')


class UserResponseSchema(Schema):
    """
    User Response Schema

    Defines what user data is returned to the frontend.
    Never return password_hash!
    """
    id = fields.Str()
    email = fields.Email()
    name = fields.Str()
    role = fields.Str()
    phone_number = fields.Str(data_key='phoneNumber')
    institution_id = fields.Str(data_key='institutionId', allow_none=True)
    institution = fields.Nested(InstitutionSummarySchema, allow_none=True)
    is_active = fields.Bool(data_key='isActive')
    last_login_at = fields.DateTime(data_key='lastLoginAt', allow_none=True)
    created_at = fields.DateTime(data_key='createdAt')
