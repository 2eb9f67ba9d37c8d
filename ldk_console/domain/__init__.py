# Console Domain Layer
"""
Domain layer containing:
- Value Objects: Operation keys, connection states, navigation tabs
- Entities: Status messages, chain source settings and editable forms
"""
from .value_objects import (
    OperationKey,
    ConnectionState,
    ActiveTab,
    ChainSourceType,
)
from .entities import (
    StatusMessage,
    ChainSourceConfig,
    Forms,
    OpenChannelForm,
    Bolt11ReceiveForm,
    Bolt11SendForm,
    Bolt12ReceiveForm,
    Bolt12SendForm,
    OnchainSendForm,
    SpliceForm,
    UpdateChannelConfigForm,
    CloseChannelForm,
    ConnectPeerForm,
)

__all__ = [
    'OperationKey',
    'ConnectionState',
    'ActiveTab',
    'ChainSourceType',
    'StatusMessage',
    'ChainSourceConfig',
    'Forms',
    'OpenChannelForm',
    'Bolt11ReceiveForm',
    'Bolt11SendForm',
    'Bolt12ReceiveForm',
    'Bolt12SendForm',
    'OnchainSendForm',
    'SpliceForm',
    'UpdateChannelConfigForm',
    'CloseChannelForm',
    'ConnectPeerForm',
]
