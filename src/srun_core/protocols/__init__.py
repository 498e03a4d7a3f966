# src/srun_core/protocols/__init__.py
"""
SRUN 协议层 (Protocol Layer)

本包负责门户请求参数的纯粹构建 (Build) 与响应解析 (Parse)。

- 不包含任何 HTTP 操作或网络 I/O。
- 不持有任何会话状态。
- 不依赖于 core 或 network 层。

子模块:
    builder: Token 相关的参数构建 (密码、info、chksum)。
    challenge: get_challenge 查询与 Token 提取。
    portal: srun_portal 登录/注销与 rad_user_info 状态的查询与响应分类。
"""

from . import constants

__all__ = ["constants"]
