import flask
from eth_utils import is_address, to_checksum_address
from flask_marshmallow.schema import Schema
from marshmallow import fields
from marshmallow.validate import OneOf, Range

from token_deployer.constants import FEE_TIERS
from token_deployer.transactions.metrics import format_operation_result


class TDSchema(Schema):
    """A :class:`.Schema` with a convenience method for validating request data."""

    def validate_and_deserialize(self, data_obj) -> dict:
        """Validate `data_obj` and deserialize its fields to native python objects.

        :raises werkzeug.exceptions.BadRequest:
            if validating the `data_obj` did not succeed.
        """
        errors = self.validate(data_obj)
        if errors:
            flask.abort(400, str(errors))
        return self.load(data_obj)


class AddressField(fields.String):
    """A field deserializing hex encoded addresses to their checksummed form."""

    default_error_messages = {
        "empty": "Must not be empty!",
        "not_address": "Must be a hex encoded address!",
    }

    def _deserialize(self, value, attr, data, **kwargs) -> str:
        if not value:
            raise self.make_error("empty")

        deserialized_string = super(AddressField, self)._deserialize(value, attr, data, **kwargs)

        if not is_address(deserialized_string):
            raise self.make_error("not_address")
        return to_checksum_address(deserialized_string)


class ChangeTierRequest(TDSchema):
    """POST /session/tier"""

    tier = fields.String(required=True, validate=OneOf(FEE_TIERS))


class DeployRequest(TDSchema):
    """POST /session/deploy

    load-only parameters:

        - owner_address (:class:`AddressField`, optional)
    """

    owner_address = AddressField(load_default=None, allow_none=True)


class MintRequest(TDSchema):
    """POST /session/mint

    load-only parameters:

        - amount (int), in the token's smallest unit
        - recipient (:class:`AddressField`, optional)
    """

    amount = fields.Integer(required=True, strict=True, validate=Range(min=1))
    recipient = AddressField(load_default=None, allow_none=True)


class TierFeesSchema(Schema):
    max_fee = fields.Decimal(as_string=True)
    max_priority_fee = fields.Decimal(as_string=True)


class ReceiptSchema(Schema):
    contract_address = fields.String(allow_none=True)
    transaction_hash = fields.String()
    block_number = fields.Integer()
    gas_used = fields.Integer()
    # wei amounts may exceed the integer precision of JSON consumers.
    gas_price = fields.Integer(as_string=True)


class OperationResultSchema(Schema):
    receipt = fields.Nested(ReceiptSchema)
    duration_seconds = fields.Decimal(as_string=True)
    total_fee = fields.Integer(as_string=True)
    display = fields.Function(format_operation_result)


class ActionSlotSchema(Schema):
    status = fields.Function(lambda slot: slot.status.value)
    result = fields.Nested(OperationResultSchema, allow_none=True)
    error = fields.String(allow_none=True)
    reverted = fields.Boolean()


class SessionStateSchema(Schema):
    fee_tier = fields.String()
    fee_snapshot = fields.Dict(
        keys=fields.String(), values=fields.Nested(TierFeesSchema), allow_none=True
    )
    fee_error = fields.String(allow_none=True)
    deploy = fields.Nested(ActionSlotSchema)
    mint = fields.Nested(ActionSlotSchema)
    deploying = fields.Boolean()
    minting = fields.Boolean()
    last_error = fields.String(allow_none=True)
