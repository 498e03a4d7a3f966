# src/srun_core/protocols/challenge.py
import logging
from typing import Any

from ..exceptions import ChallengeError
from .constants import ResponseField

logger = logging.getLogger(__name__)


def build_challenge_query(username: str, ip: str) -> dict[str, str]:
    """构建 get_challenge 的查询参数。"""
    return {"username": username, "ip": ip}


def parse_challenge_response(data: Any) -> str:
    """解析 get_challenge 响应，提取 Token。

    Raises:
        ChallengeError: 响应不是对象，或 challenge 字段缺失/为空/含非法字符。
    """
    if not isinstance(data, dict):
        raise ChallengeError("Challenge 响应不是 JSON 对象")

    token = data.get(ResponseField.CHALLENGE)
    if not isinstance(token, str) or not token:
        error = data.get(ResponseField.ERROR, "N/A")
        raise ChallengeError(f"Challenge 响应缺少 Token (error={error})")

    if not token.isascii() or not token.isprintable() or " " in token:
        raise ChallengeError(f"Challenge Token 格式无效 (长度 {len(token)})")

    logger.debug(f"challenge_response: token 长度={len(token)}")
    return token
