"""
SRUN 核心库 - 配置模块

负责配置的加载、解析与强类型转换。
支持从 TOML 文件、JSON 凭据文件、环境变量 (.env) 或字典中加载配置。
"""

import ipaddress
import json
import logging
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dotenv import find_dotenv, load_dotenv

from .exceptions import ConfigError
from .models import Credentials, EncodeScheme
from .protocols.constants import DEFAULT_BASE_URL, PortalConst

logger = logging.getLogger(__name__)

ENV_PREFIX = "SRUN_"
DEFAULT_CREDENTIALS_FILE = "bit-user.json"

# 字段映射表 (Config Key -> Env Suffix)
ENV_MAP = {
    "username": "USERNAME",
    "password": "PASSWORD",
    "base_url": "BASE_URL",
    "ip": "IP",
    "ac_id": "AC_ID",
    "timeout": "TIMEOUT",
    "verify_tls": "VERIFY_TLS",
    "scheme": "SCHEME",
    "charset": "CHARSET",
    "n": "N",
    "type": "TYPE",
    "enc_ver": "ENC_VER",
    "os": "OS",
    "name": "NAME",
}


@dataclass(frozen=True)
class SrunConfig:
    """SrunClient 的强类型配置对象。

    所有字段均为只读 (frozen=True)，构造后不可变。

    Attributes:
        username: 认证用户名。
        password: 认证密码。
        base_url: 网关地址 (含协议头)。
        client_ip: 客户端 IP 覆盖值；为空时从网关查询。
        ac_id: 接入点编号；为空时从网关入口页的重定向中发现。
        timeout: 单次 HTTP 请求超时 (秒)。
        verify_tls: 是否校验 HTTPS 证书。
        scheme: 密码与校验值的编码方案。
        charset: 凭据字符集 (默认 UTF-8 透传)。
        n: 协议常量 n。
        portal_type: 协议常量 type。
        enc_ver: 加密版本标记。
        os_name: 上报的操作系统名。
        device_name: 上报的设备名。
    """

    username: str
    password: str
    base_url: str = DEFAULT_BASE_URL
    client_ip: str | None = None
    ac_id: str | None = None
    timeout: float = 5.0
    verify_tls: bool = True
    scheme: EncodeScheme = EncodeScheme.XENCODE
    charset: str = "utf-8"
    n: str = PortalConst.N
    portal_type: str = PortalConst.TYPE
    enc_ver: str = PortalConst.ENC_VER
    os_name: str = "Linux"
    device_name: str = "Linux"

    @property
    def credentials(self) -> Credentials:
        return Credentials(username=self.username, password=self.password)

    def __repr__(self) -> str:
        """
        覆盖默认的 repr，隐藏密码字段，防止日志泄露敏感信息。
        """
        return (
            f"<{self.__class__.__name__} "
            f"base_url={self.base_url}, "
            f"username='{self.username}', "
            f"password='******', "
            f"client_ip={self.client_ip}, "
            f"ac_id={self.ac_id}, "
            f"scheme={self.scheme.value}>"
        )


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "t", "yes", "on")


def create_config_from_dict(
    raw_data: dict[str, Any], require_credentials: bool = True
) -> SrunConfig:
    """通用工厂：将字典转换为强类型配置对象。

    负责字段的清洗、默认值注入和类型转换。

    Args:
        raw_data: 原始配置字典 (来自 TOML / JSON / Env / CLI)。
        require_credentials: 为 False 时允许缺少用户名/密码 (仅查询状态)。

    Returns:
        SrunConfig: 验证并转换后的配置对象。

    Raises:
        ConfigError: 当必要字段缺失或格式错误时抛出。
    """
    try:
        # --- 内部辅助函数 ---
        def _req(key: str) -> str:
            """获取必要字段，缺失则报错"""
            value = raw_data.get(key)
            if value is None or value == "":
                if not require_credentials:
                    return ""
                raise ConfigError(f"配置缺失: 缺少必要字段 '{key}'")
            return str(value)

        def _opt(key: str) -> str | None:
            """获取可选字段，空字符串视为未设置"""
            value = raw_data.get(key)
            if value is None or str(value).strip() == "":
                return None
            return str(value).strip()

        def _ip(key: str) -> str | None:
            val = _opt(key)
            if val is None:
                return None
            try:
                return str(ipaddress.ip_address(val))
            except ValueError:
                raise ConfigError(f"IP 格式无效 '{key}': {val}")

        def _url(key: str) -> str:
            val = _opt(key) or DEFAULT_BASE_URL
            if not val.startswith(("http://", "https://")):
                raise ConfigError(f"URL 必须以 http:// 或 https:// 开头: {val}")
            return val.rstrip("/")

        def _timeout(key: str) -> float:
            val = raw_data.get(key, 5.0)
            try:
                timeout = float(val)
            except (TypeError, ValueError):
                raise ConfigError(f"超时格式无效: {val}")
            if timeout <= 0:
                raise ConfigError(f"超时必须为正数: {val}")
            return timeout

        def _scheme(key: str) -> EncodeScheme:
            val = _opt(key) or EncodeScheme.XENCODE.value
            try:
                return EncodeScheme(val.lower())
            except ValueError:
                choices = ", ".join(s.value for s in EncodeScheme)
                raise ConfigError(f"不支持的编码方案: {val} (可选: {choices})")

        # --- 构建对象 ---
        return SrunConfig(
            username=_req("username"),
            password=_req("password"),
            base_url=_url("base_url"),
            client_ip=_ip("ip"),
            ac_id=_opt("ac_id"),
            timeout=_timeout("timeout"),
            verify_tls=_to_bool(raw_data.get("verify_tls", True)),
            scheme=_scheme("scheme"),
            charset=_opt("charset") or "utf-8",
            n=_opt("n") or PortalConst.N,
            portal_type=_opt("type") or PortalConst.TYPE,
            enc_ver=_opt("enc_ver") or PortalConst.ENC_VER,
            os_name=_opt("os") or "Linux",
            device_name=_opt("name") or "Linux",
        )

    except Exception as e:
        if isinstance(e, ConfigError):
            raise
        raise ConfigError(f"配置生成失败: {e}") from e


def read_toml(file_path: Path, profile: str = "default") -> dict[str, Any]:
    """读取 TOML 文件中的原始配置字典。

    支持多层级查找策略:
    1. [profile.xxx]: 优先查找指定的 profile 块。
    2. [srun]: 兼容单节配置。
    3. Root: 兼容根目录直接配置。

    Raises:
        ConfigError: 文件读取失败或 Profile 不存在。
    """
    if not file_path.exists():
        raise ConfigError(f"配置文件未找到: {file_path}")

    try:
        with open(file_path, "rb") as f:
            data = tomllib.load(f)
    except Exception as e:
        raise ConfigError(f"读取 TOML 失败: {e}") from e

    if "profile" in data:
        if profile not in data["profile"]:
            raise ConfigError(f"未找到预设: [profile.{profile}]")
        return dict(data["profile"][profile])

    if "srun" in data:
        if profile != "default":
            logger.warning(f"配置仅包含 [srun] 节，忽略 profile='{profile}'。")
        return dict(data["srun"])

    return dict(data)


def read_json(file_path: Path) -> dict[str, Any]:
    """读取 JSON 凭据文件 (bit-user.json 格式: {"username", "password"})。

    Raises:
        ConfigError: 文件不存在、无法解析或不是 JSON 对象。
    """
    if not file_path.exists():
        raise ConfigError(f"配置文件未找到: {file_path}")

    try:
        data = json.loads(file_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise ConfigError(f"读取 JSON 失败 {file_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"JSON 配置必须是对象: {file_path}")
    return data


def read_config_file(file_path: Path, profile: str = "default") -> dict[str, Any]:
    """按扩展名分派读取配置文件 (.toml / .json)。"""
    suffix = file_path.suffix.lower()
    if suffix == ".toml":
        return read_toml(file_path, profile)
    if suffix == ".json":
        return read_json(file_path)
    raise ConfigError(f"不支持的配置文件格式: {file_path}")


def read_env(env_file: Path | None = None) -> dict[str, Any]:
    """读取所有以 `SRUN_` 开头的环境变量。

    若指定了 env_file 或当前目录存在 .env 文件，会先通过 python-dotenv 加载。
    例如: `SRUN_USERNAME` -> `username`。
    """
    if env_file is not None:
        if not env_file.exists():
            raise ConfigError(f".env 文件未找到: {env_file}")
        load_dotenv(dotenv_path=env_file, override=True)
        logger.debug(f"已加载配置文件: {env_file}")
    else:
        found = find_dotenv(usecwd=True)
        if found:
            load_dotenv(dotenv_path=found)
            logger.debug(f"已加载配置文件: {found}")

    raw_data = {}
    for cfg_key, env_suffix in ENV_MAP.items():
        val = os.environ.get(f"{ENV_PREFIX}{env_suffix}")
        if val is not None:
            raw_data[cfg_key] = val
    return raw_data


def load_config_from_toml(file_path: Path, profile: str = "default") -> SrunConfig:
    """从 TOML 文件加载配置。"""
    return create_config_from_dict(read_toml(file_path, profile))


def load_config_from_json(file_path: Path) -> SrunConfig:
    """从 JSON 凭据文件加载配置。"""
    return create_config_from_dict(read_json(file_path))


def load_config_from_file(file_path: Path, profile: str = "default") -> SrunConfig:
    """从配置文件加载配置 (按扩展名自动选择格式)。"""
    return create_config_from_dict(read_config_file(file_path, profile))


def load_config_from_env(env_file: Path | None = None) -> SrunConfig:
    """从环境变量加载配置 (Docker/Cloud Friendly)。

    Raises:
        ConfigError: 未检测到任何相关环境变量。
    """
    raw_data = read_env(env_file)
    if not raw_data:
        raise ConfigError("未检测到 SRUN_ 前缀的环境变量")
    return create_config_from_dict(raw_data)
