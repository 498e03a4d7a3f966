# src/srun_core/__init__.py
"""
SRUN-Core v1.0.0
SRUN 校园网门户 (srun_bx1) 认证协议核心库。
"""

__version__ = "1.0.0"

# 暴露核心配置
from .config import (
    SrunConfig,
    create_config_from_dict,
    load_config_from_env,
    load_config_from_file,
    load_config_from_json,
    load_config_from_toml,
)

# 暴露引擎
from .core import SrunClient

# 暴露异常体系 (方便上层 try-except)
from .exceptions import (
    ChallengeError,
    ConfigError,
    EncodingError,
    ProtocolError,
    SrunError,
    TransportError,
)
from .models import Credentials, EncodeScheme, Operation, OperationResult, RequestParams

__all__ = [
    "SrunClient",
    "SrunConfig",
    "Credentials",
    "EncodeScheme",
    "Operation",
    "OperationResult",
    "RequestParams",
    "create_config_from_dict",
    "load_config_from_env",
    "load_config_from_file",
    "load_config_from_json",
    "load_config_from_toml",
    "SrunError",
    "ConfigError",
    "TransportError",
    "ProtocolError",
    "ChallengeError",
    "EncodingError",
]
