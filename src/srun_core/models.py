# File: src/srun_core/models.py
"""
SRUN 核心库 - 数据模型

定义引擎使用的值类型。所有对象都是不可变的 (frozen) 或仅在构造时填充，
不包含任何共享的可变状态。
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any

from .exceptions import ProtocolError
from .protocols.constants import KNOWN_ERRORS, RESULT_OK, ResponseField


@dataclass(frozen=True)
class Credentials:
    """已解析完成的用户凭据 (由外部协作者提供)。"""

    username: str
    password: str

    def __repr__(self) -> str:
        """隐藏密码字段，防止日志泄露敏感信息。"""
        return f"Credentials(username='{self.username}', password='******')"


class Operation(Enum):
    """门户操作类型，值即为 srun_portal 的 action 参数。"""

    LOGIN = "login"
    LOGOUT = "logout"


class EncodeScheme(Enum):
    """密码字段与校验值的编码方案。

    XENCODE: 密码经 xEncode + 网关 Base64 编码，
        校验值覆盖 (username, token, password, ac_id, token, info, token)。
    HMAC_MD5: 密码为 "{MD5}" + HMAC-MD5(token, password)，
        校验值为 token 交错拼接全部字段 (标准 srun_bx1 门户)。
    """

    XENCODE = "xencode"
    HMAC_MD5 = "hmac_md5"


@dataclass(frozen=True)
class RequestParams:
    """srun_portal 请求的查询参数 (不含 callback 与时间戳)。

    Attributes:
        action: login / logout。
        username: 用户名。
        password: 编码后的密码字段。
        ac_id: 接入点编号。
        ip: 客户端 IP。
        chksum: SHA-1 校验值 (40 位十六进制)。
        info: "{SRBX1}" 包裹的编码信息块。
        n: 协议常量。
        type: 协议常量。
        os: 客户端操作系统标识。
        name: 客户端设备名。
        double_stack: 双栈标志。
    """

    action: str
    username: str
    password: str
    ac_id: str
    ip: str
    chksum: str
    info: str
    n: str
    type: str
    os: str
    name: str
    double_stack: str

    def as_query(self) -> dict[str, str]:
        return asdict(self)

    def __repr__(self) -> str:
        return (
            f"<{self.__class__.__name__} action={self.action}, "
            f"username='{self.username}', ip={self.ip}, ac_id={self.ac_id}, "
            f"chksum={self.chksum}>"
        )


@dataclass
class OperationResult:
    """网关对 status/login/logout 的响应。

    error == "ok" 表示成功；其他值是网关给出的业务失败代码，
    与 error_msg 一起交给调用方展示，而不是作为异常抛出。

    Attributes:
        error: 网关返回的机器代码。
        error_msg: 网关返回的人类可读信息 (成功时通常为空)。
        online_ip: 在线 IP (缺失时回退为 client_ip)。
        username: 用户名 (status 接口中字段名为 user_name)。
        raw: 完整的原始响应，供 verbose 模式展示。
    """

    error: str
    error_msg: str = ""
    online_ip: str = ""
    username: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_response(cls, data: Any) -> "OperationResult":
        """从已解析的 JSON 对象构建结果。

        Args:
            data: 解包后的响应对象。

        Returns:
            OperationResult: 结构化结果。

        Raises:
            ProtocolError: 响应不是对象或缺少 `error` 字段。
        """
        if not isinstance(data, dict):
            raise ProtocolError(f"响应不是 JSON 对象: {type(data).__name__}")

        error = data.get(ResponseField.ERROR)
        if not isinstance(error, str):
            raise ProtocolError("响应缺少必需的 error 字段")

        online_ip = data.get(ResponseField.ONLINE_IP) or data.get(
            ResponseField.CLIENT_IP, ""
        )
        username = data.get(ResponseField.USERNAME) or data.get(
            ResponseField.USER_NAME
        )

        return cls(
            error=error,
            error_msg=str(data.get(ResponseField.ERROR_MSG) or ""),
            online_ip=str(online_ip),
            username=str(username) if username else None,
            raw=dict(data),
        )

    @property
    def ok(self) -> bool:
        return self.error == RESULT_OK

    @property
    def online(self) -> bool:
        """status 语义下的在线判定。"""
        return self.ok

    @property
    def description(self) -> str:
        """获取失败原因的中文描述，未知代码时回退为网关原文。"""
        if self.ok:
            return "成功"
        for key in (self.error_msg, self.error):
            for prefix, desc in KNOWN_ERRORS.items():
                if key and key.startswith(prefix):
                    return desc
        return self.error_msg or self.error
