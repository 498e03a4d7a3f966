# File: src/srun_core/protocols/builder.py
"""
SRUN 门户参数构建器 (Parameter Builder)

负责将凭据 + Challenge Token 转换为网关要求的请求参数：
编码后的密码、"{SRBX1}" 包裹的 info 信息块以及 chksum 校验值。

本模块是无状态的 (Stateless)：相同输入永远产生逐字节相同的输出，
因为网关会在服务端重新计算 chksum 并比对。
"""

import json
import logging

from .. import codec
from ..exceptions import EncodingError
from ..models import Credentials, EncodeScheme, Operation, RequestParams
from .constants import PortalConst

logger = logging.getLogger(__name__)


def encode_credentials(
    credentials: Credentials, charset: str = "utf-8"
) -> tuple[bytes, bytes]:
    """按指定字符集编码用户名与密码。

    默认策略为 UTF-8 透传：非 ASCII 字符以 UTF-8 字节原样进入编码流程。
    若配置为 "ascii"，则任何非 ASCII 字符都会被拒绝。

    Args:
        credentials: 用户凭据。
        charset: 字符集名称。

    Returns:
        tuple[bytes, bytes]: (username_bytes, password_bytes)。

    Raises:
        EncodingError: 任一字段无法以该字符集表示。
    """
    encoded = []
    for name in ("username", "password"):
        value = getattr(credentials, name)
        try:
            encoded.append(value.encode(charset))
        except UnicodeEncodeError as e:
            raise EncodingError(
                f"{name} 无法使用 {charset} 编码 (位置 {e.start})", field=name
            ) from e
        except LookupError as e:
            raise EncodingError(f"未知字符集: {charset}", field=name) from e
    return encoded[0], encoded[1]


def build_info(
    username: str,
    password: str,
    ip: str,
    ac_id: str,
    enc_ver: str = PortalConst.ENC_VER,
) -> str:
    """序列化 InfoPayload。

    字段顺序与键名由网关约定，必须逐字节一致：
    username, password, ip, acid, enc_ver，紧凑格式 (无空白)。
    """
    payload = {
        "username": username,
        "password": password,
        "ip": ip,
        "acid": ac_id,
        "enc_ver": enc_ver,
    }
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


def encode_info(info: bytes, token: str) -> str:
    """xEncode + 网关 Base64，并加上 "{SRBX1}" 前缀。"""
    return PortalConst.INFO_PREFIX + codec.b64encode(codec.xencode(info, token))


def encode_password(password: bytes, token: str, scheme: EncodeScheme) -> str:
    """按方案编码密码字段。

    Args:
        password: 已编码的密码字节流。
        token: Challenge Token。
        scheme: 编码方案。

    Returns:
        str: 可直接放入查询参数的密码字段。
    """
    if scheme is EncodeScheme.HMAC_MD5:
        return PortalConst.MD5_PREFIX + codec.hmac_md5(token, password)
    return codec.b64encode(codec.xencode(password, token))


def build_params(
    credentials: Credentials,
    token: str,
    operation: Operation,
    client_ip: str,
    ac_id: str = PortalConst.DEFAULT_AC_ID,
    *,
    scheme: EncodeScheme = EncodeScheme.XENCODE,
    charset: str = "utf-8",
    n: str = PortalConst.N,
    type_: str = PortalConst.TYPE,
    enc_ver: str = PortalConst.ENC_VER,
    os_name: str = "Linux",
    device_name: str = "Linux",
) -> RequestParams:
    """构建 srun_portal 请求参数。

    步骤:
    1. 序列化 InfoPayload 并编码为 "{SRBX1}..." 信息块。
    2. 按方案编码密码字段。
    3. 计算覆盖全部字段的 chksum。

    Args:
        credentials: 用户凭据。
        token: Challenge Token。
        operation: 登录或注销。
        client_ip: 客户端 IP。
        ac_id: 接入点编号，未知时为 "0"。
        scheme: 编码方案。
        charset: 凭据字符集。
        n: 协议常量。
        type_: 协议常量。
        enc_ver: 加密版本标记。
        os_name: 上报的操作系统名。
        device_name: 上报的设备名。

    Returns:
        RequestParams: 构建好的参数集。

    Raises:
        EncodingError: 凭据无法以 charset 编码。
    """
    _, password_bytes = encode_credentials(credentials, charset)

    info_json = build_info(
        credentials.username, credentials.password, client_ip, ac_id, enc_ver
    )
    try:
        info_bytes = info_json.encode(charset)
    except UnicodeEncodeError as e:
        raise EncodingError(f"info 无法使用 {charset} 编码") from e
    info = encode_info(info_bytes, token)

    password_field = encode_password(password_bytes, token, scheme)

    if scheme is EncodeScheme.HMAC_MD5:
        hmd5 = password_field[len(PortalConst.MD5_PREFIX) :]
        fields = [credentials.username, hmd5, ac_id, client_ip, n, type_, info]
        chksum = codec.checksum(part for field in fields for part in (token, field))
    else:
        chksum = codec.checksum(
            [credentials.username, token, password_field, ac_id, token, info, token]
        )

    logger.debug(
        f"build_params: action={operation.value} user={credentials.username} "
        f"ip={client_ip} ac_id={ac_id} scheme={scheme.value}"
    )

    return RequestParams(
        action=operation.value,
        username=credentials.username,
        password=password_field,
        ac_id=ac_id,
        ip=client_ip,
        chksum=chksum,
        info=info,
        n=n,
        type=type_,
        os=os_name,
        name=device_name,
        double_stack=PortalConst.DOUBLE_STACK,
    )
