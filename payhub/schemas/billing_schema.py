from marshmallow import Schema, fields, validate, EXCLUDE

from payhub.models.subscription import BILLING_CYCLES


class SubscriptionSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    plan_name = fields.Str(
        required=True,
        data_key='planName',
        validate=validate.Length(min=1, error="Plan name is required"),
        error_messages={"required": "Plan name is required"}
    )
    plan_price = fields.Float(
        required=True,
        data_key='planPrice',
        validate=validate.Range(min=0, min_inclusive=False, error="Plan price must be positive"),
        error_messages={"required": "Plan price is required"}
    )
    billing_cycle = fields.Str(
        required=True,
        data_key='billingCycle',
        validate=validate.OneOf(BILLING_CYCLES, error="Billing cycle must be monthly or yearly"),
        error_messages={"required": "Billing cycle must be monthly or yearly"}
    )
    trial_end_date = fields.DateTime(data_key='trialEndDate', allow_none=True)
    institution_id = fields.Str(data_key='institutionId', load_only=True)


class PaymentSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    amount = fields.Float(
        required=True,
        validate=validate.Range(min=0, min_inclusive=False, error="Amount must be positive"),
        error_messages={"required": "Amount is required"}
    )
    currency = fields.Str(load_default='NGN', validate=validate.Length(min=3, max=10, error="Invalid currency code"))
    description = fields.Str(allow_none=True)
    subscription_id = fields.Str(data_key='subscriptionId', allow_none=True)
    institution_id = fields.Str(data_key='institutionId', load_only=True)


class SubscriptionSummarySchema(Schema):
    id = fields.Str()
    plan_name = fields.Str(data_key='planName')
    billing_cycle = fields.Str(data_key='billingCycle')


class PaymentResponseSchema(Schema):
    id = fields.Str()
    institution_id = fields.Str(data_key='institutionId')
    subscription_id = fields.Str(data_key='subscriptionId', allow_none=True)
    subscription = fields.Nested(SubscriptionSummarySchema, allow_none=True)
    amount = fields.Float()
    currency = fields.Str()
    status = fields.Str()
    external_reference = fields.Str(data_key='externalReference', allow_none=True)
    description = fields.Str(allow_none=True)
    created_at = fields.DateTime(data_key='createdAt')
    updated_at = fields.DateTime(data_key='updatedAt')


class SubscriptionResponseSchema(Schema):
    id = fields.Str()
    institution_id = fields.Str(data_key='institutionId')
    plan_name = fields.Str(data_key='planName')
    plan_price = fields.Float(data_key='planPrice')
    billing_cycle = fields.Str(data_key='billingCycle')
    status = fields.Str()
    start_date = fields.DateTime(data_key='startDate', allow_none=True)
    end_date = fields.DateTime(data_key='endDate', allow_none=True)
    trial_end_date = fields.DateTime(data_key='trialEndDate', allow_none=True)
    created_at = fields.DateTime(data_key='createdAt')
    updated_at = fields.DateTime(data_key='updatedAt')
