"""
按键名称解析模块

将键盘翻译器文件中的按键名称（如 "Home"、"F5"、"prior"）转换为Qt键码。
先查找兼容旧文件的按键名称表，再交给 QKeySequence 解析。
"""

from typing import Dict, Optional, Tuple, Union

from PySide6.QtCore import Qt
from PySide6.QtGui import QKeySequence

from keytab.tools import DiagnosticSink, resolveDiagnosticSink

# 向后兼容性处理 - 旧版文件中使用的按键名称
LEGACY_KEY_NAMES: Dict[str, Qt.Key] = {
    "prior": Qt.Key.Key_PageUp,
    "next": Qt.Key.Key_PageDown,
    "tab": Qt.Key.Key_Tab,
    "return": Qt.Key.Key_Return,
    "enter": Qt.Key.Key_Enter,
    "escape": Qt.Key.Key_Escape,
    "space": Qt.Key.Key_Space,
    "up": Qt.Key.Key_Up,
    "down": Qt.Key.Key_Down,
    "left": Qt.Key.Key_Left,
    "right": Qt.Key.Key_Right,
    "insert": Qt.Key.Key_Insert,
    "delete": Qt.Key.Key_Delete,
    "home": Qt.Key.Key_Home,
    "end": Qt.Key.Key_End,
    "pageup": Qt.Key.Key_PageUp,
    "pagedown": Qt.Key.Key_PageDown,
    "pgup": Qt.Key.Key_PageUp,
    "pgdown": Qt.Key.Key_PageDown,
    "backspace": Qt.Key.Key_Backspace,
    "backtab": Qt.Key.Key_Backtab,
    "+": Qt.Key.Key_Plus,
    "-": Qt.Key.Key_Minus,
}

# Qt支持 F1-F35
MAX_FUNCTION_KEY = 35


def _toKey(code: int) -> Union[Qt.Key, int]:
    """将整数键码转换为Qt.Key，非枚举值时保持整数。"""
    try:
        return Qt.Key(code)
    except ValueError:
        return code


def _parseWithKeySequence(item: str, diagnostics: DiagnosticSink) -> Optional[Union[Qt.Key, int]]:
    """
    使用 QKeySequence 解析按键名称。

    序列包含多个按键时只保留最后一个，与按键序列表达式中
    "后出现的按键名称覆盖先出现的" 规则一致。
    """
    sequence = QKeySequence.fromString(item, QKeySequence.SequenceFormat.PortableText)
    if sequence.isEmpty():
        return None

    # 提取键码部分，去除修饰键
    combined = sequence[sequence.count() - 1].toCombined()
    keyCode = combined & ~Qt.KeyboardModifier.KeyboardModifierMask.value
    # 无法识别的名称被QKeySequence解析为Key_unknown
    if keyCode == Qt.Key.Key_unknown.value:
        return None

    if sequence.count() > 1:
        diagnostics(f"Unhandled key codes in sequence: {item}")

    return _toKey(keyCode)


def keyNameToKeyCode(item: str,
                     diagnostics: Optional[DiagnosticSink] = None) -> Tuple[bool, Union[Qt.Key, int]]:
    """
    解析按键名称。

    Args:
        item: 按键名称，大小写不敏感
        diagnostics: 诊断输出函数，默认写入包日志

    Returns:
        tuple: (success, key_code)，失败时键码为 Qt.Key.Key_unknown
    """
    diagnostics = resolveDiagnosticSink(diagnostics)
    itemLower = item.lower()

    if itemLower in LEGACY_KEY_NAMES:
        return (True, LEGACY_KEY_NAMES[itemLower])

    # 功能键处理
    if itemLower.startswith('f') and itemLower[1:].isdigit():
        funcNum = int(itemLower[1:])
        if 1 <= funcNum <= MAX_FUNCTION_KEY:
            return (True, getattr(Qt.Key, f'Key_F{funcNum}'))

    # 单个数字或字母
    if len(itemLower) == 1 and itemLower.isascii() and itemLower.isalnum():
        return (True, getattr(Qt.Key, f'Key_{itemLower.upper()}'))

    # 尝试使用QKeySequence解析，再尝试首字母大写版本
    for candidate in (item, item.title()):
        keyCode = _parseWithKeySequence(candidate, diagnostics)
        if keyCode is not None:
            return (True, keyCode)

    return (False, Qt.Key.Key_unknown)


# 为了兼容性，添加snake_case版本的函数名
def key_name_to_key_code(item: str,
                         diagnostics: Optional[DiagnosticSink] = None) -> Tuple[bool, Union[Qt.Key, int]]:
    """snake_case版本的keyNameToKeyCode，用于向后兼容"""
    return keyNameToKeyCode(item, diagnostics)
