# tests/conftest.py
import os
import sys
from pathlib import Path

import pytest

# 确保 src 目录在 sys.path 中
src_path = Path(__file__).resolve().parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from srun_core.config import ENV_MAP, ENV_PREFIX, SrunConfig
from srun_core.models import Credentials


@pytest.fixture
def valid_config():
    """
    [Fixture] 返回一个指定了 IP 与 ac_id 的 SrunConfig，
    这样登录流程只会发出 Challenge 与 Portal 两个请求。
    """
    return SrunConfig(
        username="u1",
        password="p1",
        base_url="http://10.0.0.55",
        client_ip="10.0.0.2",
        ac_id="1",
        timeout=3.0,
    )


@pytest.fixture
def credentials():
    return Credentials(username="u1", password="p1")


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """移除所有 SRUN_* 环境变量，并切换到一个空的工作目录。"""
    keys = [f"{ENV_PREFIX}{suffix}" for suffix in ENV_MAP.values()]
    for key in keys:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    yield tmp_path
    # load_dotenv 直接写入 os.environ，需手动清理
    for key in keys:
        os.environ.pop(key, None)
