"""
keytab测试的公共fixture
"""

import os

import pytest

# 测试环境中没有显示服务器
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


class DiagnosticCollector(list):
    """收集诊断信息的列表，可直接作为 diagnostics 参数传入"""

    def __call__(self, message: str) -> None:
        self.append(message)


@pytest.fixture
def diagnostics() -> DiagnosticCollector:
    return DiagnosticCollector()
