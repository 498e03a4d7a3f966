# src/srun_core/protocols/constants.py
"""
SRUN 协议层 - 常量定义

本模块定义了门户协议相关的端点路径、固定字段和标记。
采用命名空间 (Class Namespace) 组织。
"""

# =========================================================================
# 1. 端点 (Endpoints)
# =========================================================================


class Endpoint:
    """网关 CGI 接口路径 (相对 base_url)"""

    CHALLENGE = "/cgi-bin/get_challenge"
    PORTAL = "/cgi-bin/srun_portal"
    USER_INFO = "/cgi-bin/rad_user_info"


DEFAULT_BASE_URL = "http://10.0.0.55"

# =========================================================================
# 2. 协议固定字段
# =========================================================================


class PortalConst:
    N = "200"
    TYPE = "1"
    ENC_VER = "srun_bx1"
    DOUBLE_STACK = "0"

    # info 字段的包裹前缀
    INFO_PREFIX = "{SRBX1}"
    # hmac_md5 方案下 password 字段的前缀
    MD5_PREFIX = "{MD5}"

    # 未能发现 ac_id 时的占位值
    DEFAULT_AC_ID = "0"

    # 网关前端 jQuery 风格的回调名前缀
    CALLBACK_PREFIX = "jQuery112406118340540763985"


# =========================================================================
# 3. 响应字段
# =========================================================================


class ResponseField:
    ERROR = "error"
    ERROR_MSG = "error_msg"
    CHALLENGE = "challenge"
    ONLINE_IP = "online_ip"
    CLIENT_IP = "client_ip"
    USERNAME = "username"
    USER_NAME = "user_name"


RESULT_OK = "ok"
NOT_ONLINE = "not_online_error"

# =========================================================================
# 4. 已知的网关错误信息
# =========================================================================

# 键为 error_msg 的前缀 (网关通常返回 "E2553: Password is error." 这样的形式)
KNOWN_ERRORS = {
    "E2531": "用户不存在",
    "E2553": "账号或密码错误",
    "E2606": "账号已被禁用",
    "E2616": "账户已欠费",
    "E2620": "账号已在线，在线设备数量超出限制",
    "INFO failed, BAS respond timeout.": "认证服务器 (BAS) 响应超时",
    "sign_error": "校验值错误 (chksum 不匹配)",
    "challenge_expire_error": "Challenge 已过期，请重试",
    NOT_ONLINE: "当前 IP 不在线",
}
