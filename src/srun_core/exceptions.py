# File: src/srun_core/exceptions.py
"""
SRUN 核心库 - 异常体系 (Exceptions)

定义库内统一使用的异常类，以便上层应用（如 CLI）能进行精细的错误处理。

注意: 网关返回的业务失败 (error != "ok") 不属于异常，
它们会被解析为正常的 OperationResult 交给调用方展示。
"""


class SrunError(Exception):
    """SRUN 核心库所有内部异常的基类。

    上层应用可以通过捕获此异常来处理所有由 srun-core 抛出的已知错误。
    """

    pass


class ConfigError(SrunError):
    """配置加载或校验失败。

    触发场景:
    1. 缺少必要字段 (如 username/password)。
    2. 字段格式错误 (如 IP 地址非法、超时不是数字)。
    3. 找不到配置文件或文件格式无法解析。
    """

    pass


class TransportError(SrunError):
    """网络传输层面的错误 (I/O 级别)。

    触发场景:
    1. 连接被拒绝或 DNS 解析失败。
    2. 请求超时。
    3. TLS 握手失败。
    4. 网关返回非 2xx 的 HTTP 状态码。

    注意: 本库不会自动重试，是否重试由上层决定。
    """

    pass


class ProtocolError(SrunError):
    """协议交互错误 (逻辑级别)。

    触发场景:
    1. 响应体既不是 JSON 也不是 JSONP。
    2. 响应缺少必需的 `error` 字段。
    """

    pass


class ChallengeError(ProtocolError):
    """Challenge 阶段失败。

    网关的 get_challenge 响应中缺少 `challenge` 字段或其值无效。
    此时流程会在任何编码工作之前中止。
    """

    pass


class EncodingError(SrunError):
    """凭据无法按指定字符集编码。

    在发起任何网络请求之前抛出。
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        """初始化编码错误。

        Args:
            message: 错误描述信息。
            field: 出错的字段名 (username / password)。
        """
        super().__init__(message)
        self.field = field
