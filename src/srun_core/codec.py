# File: src/srun_core/codec.py
"""
SRUN 核心库 - 编解码算法工具箱 (Codec)

本模块汇集了 SRUN 门户协议使用的混淆与校验算法。
所有函数都是纯函数：无 I/O、无共享的可变状态，可以在任何线程或测试中直接调用。

这些算法是网关的线上格式 (interop format)，每一个移位、常量与字节序
都必须与网关 JavaScript 实现逐位一致，不能替换为“等价”算法。
"""

import base64
import hashlib
import hmac
import struct
from collections.abc import Iterable

# XXTEA 的黄金分割常量 (网关 JS 中写作 0x86014019 | 0x183639A0)
XXTEA_DELTA = 0x9E3779B9
MASK32 = 0xFFFFFFFF

# 网关自定义的 Base64 字母表
SRUN_ALPHABET = "LVoJPiCN2R8G90yg+hmFHuacZ1OWMnrsSTXkYpUq/3dlbfKwv6xztjI7DeBE45QA"
STANDARD_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"

_ENCODE_TABLE = str.maketrans(STANDARD_ALPHABET, SRUN_ALPHABET)
_DECODE_TABLE = str.maketrans(SRUN_ALPHABET, STANDARD_ALPHABET)


def _to_bytes(value: str | bytes) -> bytes:
    if isinstance(value, bytes):
        return value
    return value.encode("utf-8")


def _pack_words(data: bytes, include_length: bool) -> list[int]:
    """将字节流按 4 字节小端序打包为 32 位整数列表。

    不足 4 字节的尾部以 0x00 补齐。

    Args:
        data: 原始字节流。
        include_length: 是否在末尾追加原始长度 (加密明文时为 True)。

    Returns:
        list[int]: 32 位无符号整数列表。
    """
    padded = data + b"\x00" * (-len(data) % 4)
    words = list(struct.unpack(f"<{len(padded) // 4}I", padded))
    if include_length:
        words.append(len(data))
    return words


def _unpack_words(words: list[int]) -> bytes:
    return struct.pack(f"<{len(words)}I", *words)


def _key_words(key: str | bytes) -> list[int]:
    """派生 4 个 32 位密钥字。

    密钥不足 4 个字时以 0 补齐 (空密钥即为全 0)，超出部分不参与运算。
    """
    words = _pack_words(_to_bytes(key), include_length=False)
    words += [0] * (4 - len(words))
    return words[:4]


def _mx(z: int, y: int, total: int, k: list[int], p: int, e: int) -> int:
    # 网关版本为三项相加，与标准 XXTEA 的 MX 不同
    return (
        ((z >> 5) ^ ((y << 2) & MASK32))
        + ((y >> 3) ^ ((z << 4) & MASK32) ^ total ^ y)
        + (k[(p & 3) ^ e] ^ z)
    ) & MASK32


def xencode(data: bytes, key: str | bytes) -> bytes:
    """SRUN xEncode 混淆算法 (XXTEA 变体)。

    算法逻辑:
    1. 明文按 4 字节小端序打包，末尾追加明文长度字。
    2. 密钥打包为 4 个字 (不足补 0)。
    3. 执行 6 + 52 // 字数 轮 XXTEA 加密。
    4. 所有字按小端序展开为字节流。

    Args:
        data: 明文字节流。
        key: Challenge Token。

    Returns:
        bytes: 密文，长度恒为 4 的倍数；空明文返回空字节串。
    """
    if not data:
        return b""

    v = _pack_words(data, include_length=True)
    k = _key_words(key)
    n = len(v) - 1

    z = v[n]
    total = 0
    rounds = 6 + 52 // (n + 1)

    for _ in range(rounds):
        total = (total + XXTEA_DELTA) & MASK32
        e = (total >> 2) & 3
        for p in range(n):
            y = v[p + 1]
            v[p] = (v[p] + _mx(z, y, total, k, p, e)) & MASK32
            z = v[p]
        y = v[0]
        v[n] = (v[n] + _mx(z, y, total, k, n, e)) & MASK32
        z = v[n]

    return _unpack_words(v)


def xdecode(data: bytes, key: str | bytes) -> bytes:
    """xEncode 的逆运算。

    Args:
        data: xencode 产生的密文。
        key: 加密时使用的 Challenge Token。

    Returns:
        bytes: 还原的明文。密文长度非法或内嵌长度字不一致时返回空字节串。
    """
    if not data or len(data) % 4 != 0 or len(data) < 8:
        return b""

    v = list(struct.unpack(f"<{len(data) // 4}I", data))
    k = _key_words(key)
    n = len(v) - 1

    rounds = 6 + 52 // (n + 1)
    total = (rounds * XXTEA_DELTA) & MASK32
    y = v[0]

    for _ in range(rounds):
        e = (total >> 2) & 3
        for p in range(n, 0, -1):
            z = v[p - 1]
            v[p] = (v[p] - _mx(z, y, total, k, p, e)) & MASK32
            y = v[p]
        z = v[n]
        v[0] = (v[0] - _mx(z, y, total, k, 0, e)) & MASK32
        y = v[0]
        total = (total - XXTEA_DELTA) & MASK32

    length = v[n]
    max_len = n << 2
    if length < max_len - 3 or length > max_len:
        return b""

    return _unpack_words(v[:n])[:length]


def b64encode(data: bytes) -> str:
    """使用网关字母表的 Base64 编码 (保留 '=' 填充)。"""
    return base64.b64encode(data).decode("ascii").translate(_ENCODE_TABLE)


def b64decode(text: str) -> bytes:
    """b64encode 的逆运算。"""
    return base64.b64decode(text.translate(_DECODE_TABLE))


def checksum(parts: Iterable[str]) -> str:
    """计算请求参数的完整性校验值。

    各部分直接拼接 (无分隔符)，取 SHA-1 十六进制摘要。

    Args:
        parts: 有序的字符串片段。

    Returns:
        str: 40 位小写十六进制字符串。
    """
    return hashlib.sha1("".join(parts).encode("utf-8")).hexdigest()


def hmac_md5(key: str | bytes, message: str | bytes) -> str:
    """计算 HMAC-MD5 的十六进制摘要 (hmac_md5 方案的密码字段)。

    Args:
        key: HMAC 密钥 (Challenge Token)。
        message: 消息 (原始密码)。

    Returns:
        str: 32 位小写十六进制字符串。
    """
    return hmac.new(_to_bytes(key), _to_bytes(message), hashlib.md5).hexdigest()
