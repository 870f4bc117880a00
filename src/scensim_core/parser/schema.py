# src/scensim_core/parser/schema.py
"""
Cerberus schemas for scenario documents.

The top-level schema only checks the document envelope and the step tags; every
step is then validated against the schema of its own type, so that a bad field is
reported against that step's type instead of as a failed alternative of a union.
"""
import re
from typing import Any, Dict, List

import cerberus

STEP_TYPES = (
    "setState", "scDeploy", "scCall", "scQuery", "transfer",
    "validatorReward", "checkState", "dumpState", "externalSteps",
)

_BLOCK_INFO_KEY_REGEX = re.compile(r"^block(Timestamp|Nonce|Round|Epoch)$")


class EnhancedValidator(cerberus.Validator):
    """Custom Cerberus validator adding the scenario language's own rules."""

    def _validate_value_expression(self, constraint: bool, field: str, value: Any):
        """
        Values must be expression strings; plain integers are accepted as decimals.
        The rule's arguments are validated against this schema:
        {'type': 'boolean'}
        """
        if not constraint:
            return
        if isinstance(value, bool) or not isinstance(value, (str, int)):
            self._error(
                field,
                f"must be a value expression string (e.g. '1,000', 'str:abc', 'address:owner'), "
                f"got {type(value).__name__} {value!r}.",
            )
        elif isinstance(value, int) and value < 0:
            self._error(field, f"negative numbers must be written as strings, got {value}.")

    def _validate_unique_elements_by_key(self, key_for_uniqueness: str, field: str, value: List[Dict]):
        """
        Validates that all dictionaries in a list have a unique value for a given key.
        The rule's arguments are validated against this schema:
        {'type': 'string'}
        """
        if not isinstance(value, list):
            return

        seen_keys = set()
        duplicates = []
        for item in value:
            if not isinstance(item, dict):
                continue
            item_key = item.get(key_for_uniqueness)
            if item_key is not None:
                if item_key in seen_keys:
                    duplicates.append(item_key)
                else:
                    seen_keys.add(item_key)

        if duplicates:
            unique_duplicates = sorted(set(str(d) for d in duplicates))
            self._error(field, f"Duplicate values found for key '{key_for_uniqueness}': {unique_duplicates}")

    def _validate_block_info_keys(self, constraint: bool, field: str, value: Dict):
        """
        Validates the keys of a block info mapping.
        The rule's arguments are validated against this schema:
        {'type': 'boolean'}
        """
        if constraint and isinstance(value, dict):
            bad_keys = sorted(k for k in value if not _BLOCK_INFO_KEY_REGEX.match(str(k)))
            if bad_keys:
                self._error(field, f"unknown block info field(s) {bad_keys}; use blockTimestamp, blockNonce, blockRound or blockEpoch.")


_expr = {"type": ["string", "integer"], "value_expression": True}
_star = {"type": "string", "allowed": ["*"]}
_expr_list = {"type": "list", "schema": _expr}

_common_step_fields = {
    "step": {"type": "string", "required": True, "allowed": list(STEP_TYPES)},
    "id": {"type": ["string", "integer"]},
    "txId": {"type": ["string", "integer"]},
    "comment": {"type": "string"},
    "displayLogs": {"type": "boolean"},
}

_esdt_instance = {
    "type": "dict",
    "allow_unknown": True,
    "schema": {"nonce": _expr, "balance": {**_expr, "required": True}},
}

_esdt_entry = {
    "oneof": [
        _expr,
        {"type": "dict", "allow_unknown": True, "schema": {"instances": {"type": "list", "schema": _esdt_instance}}},
    ]
}

_account_schema = {
    "nonce": _expr,
    "balance": _expr,
    "esdt": {"type": "dict", "keysrules": {"type": "string"}, "valuesrules": _esdt_entry},
    "code": _expr,
    "owner": _expr,
    "storage": {"type": "dict", "keysrules": {"type": "string"}, "valuesrules": _expr},
    "username": _expr,
    "developerRewards": _expr,
    "comment": {"type": "string"},
}

_check_account_schema = {
    "nonce": _expr,
    "balance": _expr,
    "esdt": {"oneof": [_star, {"type": "dict", "keysrules": {"type": "string"}, "valuesrules": _esdt_entry}]},
    "code": _expr,
    "owner": _expr,
    "storage": {"oneof": [_star, {"type": "dict", "keysrules": {"type": "string"}, "valuesrules": _expr}]},
    "username": _expr,
    "developerRewards": _expr,
    "asyncCallData": _expr,
    "comment": {"type": "string"},
}

_block_info = {"type": "dict", "block_info_keys": True, "valuesrules": _expr}

_tx_esdt_list = {
    "type": "list",
    "schema": {
        "type": "dict",
        "schema": {
            "tokenIdentifier": {**_expr, "required": True},
            "nonce": _expr,
            "value": {**_expr, "required": True},
        },
    },
}

_expect_schema = {
    "type": "dict",
    "schema": {
        "out": {"oneof": [_star, _expr_list]},
        "status": _expr,
        "message": _expr,
        "logs": {"oneof": [_star, {
            "type": "list",
            "schema": {
                "type": "dict",
                "schema": {
                    "address": _expr,
                    "endpoint": _expr,
                    "identifier": _expr,
                    "topics": _expr_list,
                    "data": _expr,
                },
            },
        }]},
        "gas": _expr,
        "refund": _expr,
    },
}

STEP_SCHEMAS: Dict[str, Dict[str, Any]] = {
    "setState": {
        **_common_step_fields,
        "accounts": {"type": "dict", "keysrules": {"type": "string"}, "valuesrules": {"type": "dict", "schema": _account_schema}},
        "newAddresses": {"type": "list", "schema": {"type": "dict", "schema": {
            "creatorAddress": {**_expr, "required": True},
            "creatorNonce": {**_expr, "required": True},
            "newAddress": {**_expr, "required": True},
        }}},
        "previousBlockInfo": _block_info,
        "currentBlockInfo": _block_info,
    },
    "scDeploy": {
        **_common_step_fields,
        "tx": {"type": "dict", "required": True, "schema": {
            "from": {**_expr, "required": True},
            "contractCode": {**_expr, "required": True},
            "value": _expr,
            "egldValue": _expr,
            "arguments": _expr_list,
            "gasLimit": _expr,
            "gasPrice": _expr,
        }},
        "expect": _expect_schema,
    },
    "scCall": {
        **_common_step_fields,
        "tx": {"type": "dict", "required": True, "schema": {
            "from": {**_expr, "required": True},
            "to": {**_expr, "required": True},
            "value": _expr,
            "egldValue": _expr,
            "esdtValue": _tx_esdt_list,
            "function": {"type": "string", "required": True},
            "arguments": _expr_list,
            "gasLimit": _expr,
            "gasPrice": _expr,
        }},
        "expect": _expect_schema,
    },
    "scQuery": {
        **_common_step_fields,
        "tx": {"type": "dict", "required": True, "schema": {
            "to": {**_expr, "required": True},
            "function": {"type": "string", "required": True},
            "arguments": _expr_list,
        }},
        "expect": _expect_schema,
    },
    "transfer": {
        **_common_step_fields,
        "tx": {"type": "dict", "required": True, "schema": {
            "from": {**_expr, "required": True},
            "to": {**_expr, "required": True},
            "value": _expr,
            "egldValue": _expr,
            "esdtValue": _tx_esdt_list,
            "gasLimit": _expr,
            "gasPrice": _expr,
        }},
    },
    "validatorReward": {
        **_common_step_fields,
        "tx": {"type": "dict", "required": True, "schema": {
            "to": {**_expr, "required": True},
            "value": _expr,
            "egldValue": _expr,
        }},
    },
    "checkState": {
        **_common_step_fields,
        "accounts": {
            "type": "dict",
            "required": True,
            "keysrules": {"type": "string"},
            "valuesrules": {"oneof": [
                {"type": "dict", "schema": _check_account_schema},
                {"type": "string", "allowed": [""]},
            ]},
        },
    },
    "dumpState": {**_common_step_fields},
    "externalSteps": {
        **_common_step_fields,
        "path": {"type": "string", "required": True, "empty": False},
    },
}

DOCUMENT_SCHEMA: Dict[str, Any] = {
    "name": {"type": "string"},
    "comment": {"type": "string"},
    "checkGas": {"type": "boolean"},
    "traceGas": {"type": "boolean"},
    "gasSchedule": {"type": "string"},
    "steps": {
        "type": "list",
        "required": True,
        "unique_elements_by_key": "id",
        "schema": {
            "type": "dict",
            "allow_unknown": True,
            "schema": {"step": {"type": "string", "required": True, "allowed": list(STEP_TYPES)}},
        },
    },
}
