# src/scensim_core/model/__init__.py
from .account import Account, CheckAccount, CheckEsdtInstance, EsdtInstance
from .exceptions import PaymentConflictError, ResponseAlreadySetError, ResponseNotReadyError
from .step import (
    AnyStep,
    BlockInfo,
    CheckStateStep,
    DumpStateStep,
    ExternalStepsStep,
    NewAddress,
    Scenario,
    ScCallStep,
    ScDeployStep,
    ScQueryStep,
    SetStateStep,
    Step,
    TransferStep,
    TxStep,
    ValidatorRewardStep,
)
from .transaction import (
    CallKind,
    CheckLog,
    EsdtTransfer,
    PendingCall,
    TxCall,
    TxDeploy,
    TxESDT,
    TxExpect,
    TxLog,
    TxQuery,
    TxResponse,
    TxTransfer,
    TxValidatorReward,
)

__all__ = [
    # Accounts
    "Account", "CheckAccount", "CheckEsdtInstance", "EsdtInstance",
    # Steps
    "AnyStep", "BlockInfo", "CheckStateStep", "DumpStateStep", "ExternalStepsStep", "NewAddress",
    "Scenario", "ScCallStep", "ScDeployStep", "ScQueryStep", "SetStateStep", "Step",
    "TransferStep", "TxStep", "ValidatorRewardStep",
    # Transactions
    "CallKind", "CheckLog", "EsdtTransfer", "PendingCall", "TxCall", "TxDeploy", "TxESDT",
    "TxExpect", "TxLog", "TxQuery", "TxResponse", "TxTransfer", "TxValidatorReward",
    # Exceptions
    "PaymentConflictError", "ResponseAlreadySetError", "ResponseNotReadyError",
]
