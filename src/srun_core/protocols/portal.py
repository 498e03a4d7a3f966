# File: src/srun_core/protocols/portal.py
"""
SRUN 门户请求组装与响应分类 (srun_portal / rad_user_info)

负责把 RequestParams 转为查询参数，并把解包后的响应转为 OperationResult。
网关报告的业务失败 (error != "ok") 在这里只记录日志，不抛出异常。
"""

import logging
from typing import Any

from ..models import Operation, OperationResult, RequestParams

logger = logging.getLogger(__name__)


def build_portal_query(params: RequestParams) -> dict[str, str]:
    """构建 srun_portal 的查询参数。"""
    return params.as_query()


def parse_portal_response(data: Any, operation: Operation) -> OperationResult:
    """解析登录/注销响应。

    Args:
        data: 解包后的响应对象。
        operation: 本次请求的操作类型 (仅用于日志)。

    Returns:
        OperationResult: 结构化结果。

    Raises:
        ProtocolError: 响应结构不合法 (缺少 error 字段等)。
    """
    result = OperationResult.from_response(data)
    if result.ok:
        logger.info(f"{operation.value} 成功: {result.online_ip}")
    else:
        logger.warning(
            f"{operation.value} 被网关拒绝: {result.error} ({result.error_msg})"
        )
    return result


def build_status_query() -> dict[str, str]:
    """rad_user_info 只需要 callback，由客户端在发送时补充。"""
    return {}


def parse_status_response(data: Any) -> OperationResult:
    """解析 rad_user_info 响应。

    在线时 error == "ok"，并携带 online_ip 与 user_name；
    离线时 error 通常为 "not_online_error"，仍会携带 client_ip。
    """
    result = OperationResult.from_response(data)
    logger.debug(
        f"status: error={result.error} ip={result.online_ip} user={result.username}"
    )
    return result
