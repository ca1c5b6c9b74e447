"""
keytab工具模块 - 提供日志记录与诊断输出功能

这个模块提供了：
- 包级日志记录器
- 通过环境变量配置日志级别
- 默认的诊断输出函数（解析器在跳过无法识别的内容时调用）
"""

import logging
import os
from typing import Callable, Optional

# 设置日志记录器
keytabLogger = logging.getLogger("keytab")

# 日志级别可以通过环境变量覆盖，例如 KEYTAB_LOG_LEVEL=DEBUG
KEYTAB_LOG_LEVEL = os.environ.get('KEYTAB_LOG_LEVEL', 'WARNING').upper()
keytabLogger.setLevel(getattr(logging, KEYTAB_LOG_LEVEL, logging.WARNING))

# 为了兼容性，添加snake_case别名
keytab_logger = keytabLogger

# 诊断输出函数类型：接收一条诊断信息
DiagnosticSink = Callable[[str], None]


def logDiagnostic(message: str) -> None:
    """
    默认的诊断输出函数，以DEBUG级别写入包日志。

    Args:
        message: 诊断信息
    """
    keytabLogger.debug(message)


def resolveDiagnosticSink(sink: Optional[DiagnosticSink]) -> DiagnosticSink:
    """
    返回调用方提供的诊断输出函数，未提供时返回默认实现。

    Args:
        sink: 调用方提供的诊断输出函数或None

    Returns:
        DiagnosticSink: 实际使用的诊断输出函数
    """
    return sink if sink is not None else logDiagnostic


# 为了兼容性，添加snake_case版本的函数名
def log_diagnostic(message: str) -> None:
    """snake_case版本的logDiagnostic，用于向后兼容"""
    return logDiagnostic(message)


__all__ = [
    'keytabLogger',
    'keytab_logger',
    'KEYTAB_LOG_LEVEL',
    'DiagnosticSink',
    'logDiagnostic',
    'log_diagnostic',
    'resolveDiagnosticSink',
]
