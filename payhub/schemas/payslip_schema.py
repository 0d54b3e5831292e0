import calendar

from marshmallow import Schema, fields, validate, validates, post_load, EXCLUDE, ValidationError

MONTH_NAMES = {name.lower(): name for name in calendar.month_name if name}


class PayslipSchema(Schema):
    """
    Payslip create/update payload.

    `month` accepts any casing of an English month name and is stored
    capitalised ("january" -> "January") so the one-payslip-per-period
    constraint cannot be dodged by spelling.
    """
    class Meta:
        unknown = EXCLUDE

    month = fields.Str(required=True, error_messages={"required": "Month is required"})
    year = fields.Int(
        required=True,
        strict=False,
        validate=validate.Range(min=2020, error="Year must be 2020 or later"),
        error_messages={"required": "Year is required", "invalid": "Year must be a whole number"}
    )
    gross_pay = fields.Float(
        required=True,
        data_key='grossPay',
        validate=validate.Range(min=0, min_inclusive=False, error="Gross pay must be positive"),
        error_messages={"required": "Gross pay is required"}
    )
    net_pay = fields.Float(
        required=True,
        data_key='netPay',
        validate=validate.Range(min=0, min_inclusive=False, error="Net pay must be positive"),
        error_messages={"required": "Net pay is required"}
    )
    deductions = fields.Float(allow_none=True, validate=validate.Range(min=0, error="Deductions cannot be negative"))
    allowances = fields.Float(allow_none=True, validate=validate.Range(min=0, error="Allowances cannot be negative"))
    staff_id = fields.Str(data_key='staffId', allow_none=True)
    user_id = fields.Str(data_key='userId', allow_none=True)
    institution_id = fields.Str(data_key='institutionId', load_only=True)

    @validates('month')
    def validate_month(self, value, **kwargs):
        if value.strip().lower() not in MONTH_NAMES:
            raise ValidationError("Month must be a valid month name")

    @post_load
    def normalize(self, data, **kwargs):
        if data.get('month'):
            data['month'] = MONTH_NAMES[data['month'].strip().lower()]
        return data


class StaffSummarySchema(Schema):
    id = fields.Str()
    name = fields.Str()
    email = fields.Email()
    department = fields.Str(allow_none=True)


class PayslipResponseSchema(Schema):
    id = fields.Str()
    institution_id = fields.Str(data_key='institutionId')
    staff_id = fields.Str(data_key='staffId', allow_none=True)
    user_id = fields.Str(data_key='userId', allow_none=True)
    staff = fields.Nested(StaffSummarySchema, allow_none=True)
    month = fields.Str()
    year = fields.Int()
    gross_pay = fields.Float(data_key='grossPay')
    net_pay = fields.Float(data_key='netPay')
    deductions = fields.Float(allow_none=True)
    allowances = fields.Float(allow_none=True)
    status = fields.Str()
    file_name = fields.Str(data_key='fileName', allow_none=True)
    upload_date = fields.DateTime(data_key='uploadDate')
    processed_at = fields.DateTime(data_key='processedAt', allow_none=True)
    created_at = fields.DateTime(data_key='createdAt')
    updated_at = fields.DateTime(data_key='updatedAt')
