# --- src/scensim_core/constants.py ---
import logging

logger = logging.getLogger(__name__)

# --- Address Layout ---

#: Every account address is a fixed-width 32-byte identifier.
ADDRESS_LENGTH: int = 32

#: Smart contract addresses start with this many zero bytes (VM type marker).
SC_ADDRESS_NUM_LEADING_ZEROS: int = 8

#: Padding byte used by the `address:` and `sc:` value expressions.
ADDRESS_PADDING_BYTE: bytes = b"_"

# --- Reserved Endpoints ---

#: The constructor endpoint, invoked exactly once by a deploy step.
INIT_ENDPOINT: str = "init"

#: Legacy async callback endpoint, invoked on the caller after a legacy async call completes.
LEGACY_CALLBACK_ENDPOINT: str = "callBack"

#: Protected storage key accumulating validator rewards.
VALIDATOR_REWARD_KEY: bytes = b"ELRONDreward"

# --- Execution Limits ---

#: Gas limit forced on query steps (queries are free, read-only calls).
QUERY_GAS_LIMIT: int = 2**64 - 1

#: Maximum nesting depth of contract-to-contract calls within one transaction.
MAX_CALL_DEPTH: int = 32

# --- Return Codes ---
# Mirrors the VM return codes so that scenario files written for the
# production VM carry over unchanged.

STATUS_OK: int = 0
STATUS_FUNCTION_NOT_FOUND: int = 1
STATUS_FUNCTION_WRONG_SIGNATURE: int = 2
STATUS_CONTRACT_NOT_FOUND: int = 3
STATUS_USER_ERROR: int = 4
STATUS_OUT_OF_GAS: int = 5
STATUS_ACCOUNT_COLLISION: int = 6
STATUS_OUT_OF_FUNDS: int = 7
STATUS_CALL_STACK_OVERFLOW: int = 8
STATUS_CONTRACT_INVALID: int = 9
STATUS_EXECUTION_FAILED: int = 10

logger.debug("Defined core constants: address layout, reserved endpoints, return codes")
