"""
键盘翻译器条目模块

定义键盘翻译器文件（.keytab）解码结果所用的类型：
- 终端状态标志
- 终端命令
- 键盘翻译器条目（按键序列与字符序列/命令的关联）
"""

import sys
from enum import Enum, IntFlag
from typing import Dict, Union

from PySide6.QtCore import Qt
from PySide6.QtGui import QKeySequence


def oneOrZero(value: bool) -> int:
    """辅助函数：将布尔值转换为整数。"""
    return 1 if value else 0


def keyCodeValue(keyCode: Union[Qt.Key, int]) -> int:
    """辅助函数：返回键码的整数值（Qt.Key枚举或整数）。"""
    if isinstance(keyCode, Enum):
        return keyCode.value
    return int(keyCode)


class KeyboardTranslatorState(IntFlag):
    """
    键盘翻译器状态标志。
    条目可以要求某个终端状态存在、不存在，或者不关心。
    """
    # 无特殊状态
    NoState = 0
    # 新行状态
    NewLineState = 1
    # ANSI模式状态
    AnsiState = 2
    # 光标键状态
    CursorKeysState = 4
    # 替代屏幕状态（如vim、screen等程序使用）
    AlternateScreenState = 8
    # 任意修饰键状态
    AnyModifierState = 16
    # 应用键盘状态
    ApplicationKeypadState = 32


class KeyboardTranslatorCommand(IntFlag):
    """
    键盘翻译器命令。
    命令与输出文本互斥：条目要么发送文本，要么执行命令。
    """
    # 无命令
    NoCommand = 0
    # 向上滚动一页
    ScrollPageUpCommand = 2
    # 向下滚动一页
    ScrollPageDownCommand = 4
    # 向上滚动一行
    ScrollLineUpCommand = 8
    # 向下滚动一行
    ScrollLineDownCommand = 16
    # 滚动到顶部
    ScrollUpToTopCommand = 64
    # 滚动到底部
    ScrollDownToBottomCommand = 128
    # 删除字符命令
    EraseCommand = 256
    # 滚动到上一个提示符
    ScrollPromptUpCommand = 512
    # 滚动到下一个提示符
    ScrollPromptDownCommand = 1024


# 命令的显示名称，写回文件时使用；解析时按小写匹配
COMMAND_NAMES: Dict[KeyboardTranslatorCommand, str] = {
    KeyboardTranslatorCommand.EraseCommand: "Erase",
    KeyboardTranslatorCommand.ScrollPageUpCommand: "ScrollPageUp",
    KeyboardTranslatorCommand.ScrollPageDownCommand: "ScrollPageDown",
    KeyboardTranslatorCommand.ScrollLineUpCommand: "ScrollLineUp",
    KeyboardTranslatorCommand.ScrollLineDownCommand: "ScrollLineDown",
    KeyboardTranslatorCommand.ScrollUpToTopCommand: "ScrollUpToTop",
    KeyboardTranslatorCommand.ScrollDownToBottomCommand: "ScrollDownToBottom",
    KeyboardTranslatorCommand.ScrollPromptUpCommand: "ScrollPromptUp",
    KeyboardTranslatorCommand.ScrollPromptDownCommand: "ScrollPromptDown",
}

# 修饰键与状态标志写回文件时的名称，顺序即输出顺序
MODIFIER_NAMES = (
    (Qt.KeyboardModifier.ShiftModifier, "Shift"),
    (Qt.KeyboardModifier.ControlModifier, "Ctrl"),
    (Qt.KeyboardModifier.AltModifier, "Alt"),
    (Qt.KeyboardModifier.MetaModifier, "Meta"),
    (Qt.KeyboardModifier.KeypadModifier, "KeyPad"),
)

STATE_NAMES = (
    (KeyboardTranslatorState.AlternateScreenState, "AppScreen"),
    (KeyboardTranslatorState.NewLineState, "NewLine"),
    (KeyboardTranslatorState.AnsiState, "Ansi"),
    (KeyboardTranslatorState.CursorKeysState, "AppCursorKeys"),
    (KeyboardTranslatorState.AnyModifierState, "AnyModifier"),
    (KeyboardTranslatorState.ApplicationKeypadState, "AppKeypad"),
)

# 转义字符与字节值的对应关系
_ESCAPES: Dict[str, int] = {
    'E': 27,   # ESC
    'b': 8,    # Backspace
    'f': 12,   # Form Feed
    't': 9,    # Tab
    'r': 13,   # Carriage Return
    'n': 10,   # Line Feed
}
_REVERSE_ESCAPES: Dict[int, bytes] = {value: f'\\{name}'.encode('ascii') for name, value in _ESCAPES.items()}

_HEX_DIGITS = '0123456789abcdefABCDEF'


# 在Mac上Qt::ControlModifier表示Cmd，MetaModifier表示Ctrl
if sys.platform == "darwin":
    CTRL_MOD = Qt.KeyboardModifier.MetaModifier
else:
    CTRL_MOD = Qt.KeyboardModifier.ControlModifier


class KeyboardTranslatorEntry:
    """
    键盘翻译器条目，表示按键序列与字符序列/命令的关联。

    修饰键和状态标志各由一对（值, 掩码）描述：
    掩码中的位表示该项在按键序列中被提及，值中的位表示该项必须存在；
    掩码中没有的位表示不关心。
    """

    def __init__(self):
        self._key_code: int = 0
        self._modifiers: Qt.KeyboardModifier = Qt.KeyboardModifier.NoModifier
        self._modifier_mask: Qt.KeyboardModifier = Qt.KeyboardModifier.NoModifier
        self._state: KeyboardTranslatorState = KeyboardTranslatorState.NoState
        self._state_mask: KeyboardTranslatorState = KeyboardTranslatorState.NoState
        self._command: KeyboardTranslatorCommand = KeyboardTranslatorCommand.NoCommand
        self._text: bytes = b""

    def isNull(self) -> bool:
        """返回此条目是否为空（所有字段均为默认值）。"""
        return self == KeyboardTranslatorEntry()

    def command(self) -> KeyboardTranslatorCommand:
        return self._command

    def setCommand(self, command: KeyboardTranslatorCommand):
        self._command = command

    def text(self, expandWildCards: bool = False,
             modifiers: Qt.KeyboardModifier = Qt.KeyboardModifier.NoModifier) -> bytes:
        """
        返回与此条目关联的字符序列。

        Args:
            expandWildCards: 是否将文本中的 '*' 替换为修饰键编号
            modifiers: 展开通配符时使用的键盘修饰键

        Returns:
            bytes: 字符序列
        """
        expandedText = bytearray(self._text)

        if expandWildCards:
            modifierValue = 1
            modifierValue += oneOrZero(bool(modifiers & Qt.KeyboardModifier.ShiftModifier))
            modifierValue += oneOrZero(bool(modifiers & Qt.KeyboardModifier.AltModifier)) << 1
            modifierValue += oneOrZero(bool(modifiers & CTRL_MOD)) << 2

            for i in range(len(expandedText)):
                if expandedText[i] == ord('*'):
                    expandedText[i] = ord('0') + modifierValue

        return bytes(expandedText)

    def setText(self, text: bytes):
        """设置字符序列，文件中的转义序列（如 \\E、\\x1b）会被解码。"""
        self._text = self._unescape(text)

    def keyCode(self) -> int:
        return self._key_code

    def setKeyCode(self, keyCode: int):
        self._key_code = keyCode

    def modifiers(self) -> Qt.KeyboardModifier:
        """返回必须按下的键盘修饰键。"""
        return self._modifiers

    def modifierMask(self) -> Qt.KeyboardModifier:
        """返回在按键序列中被提及的键盘修饰键。"""
        return self._modifier_mask

    def setModifiers(self, modifiers: Qt.KeyboardModifier):
        self._modifiers = modifiers

    def setModifierMask(self, mask: Qt.KeyboardModifier):
        self._modifier_mask = mask

    def state(self) -> KeyboardTranslatorState:
        """返回必须存在的状态标志。"""
        return self._state

    def stateMask(self) -> KeyboardTranslatorState:
        """返回在按键序列中被提及的状态标志。"""
        return self._state_mask

    def setState(self, state: KeyboardTranslatorState):
        self._state = state

    def setStateMask(self, mask: KeyboardTranslatorState):
        self._state_mask = mask

    def escapedText(self, expandWildCards: bool = False,
                    modifiers: Qt.KeyboardModifier = Qt.KeyboardModifier.NoModifier) -> bytes:
        """
        返回转义后的文本，控制字符被替换为文件格式中的转义序列。

        Args:
            expandWildCards: 是否展开通配符
            modifiers: 修饰键

        Returns:
            bytes: 转义后的文本
        """
        result = bytearray()

        for ch in self.text(expandWildCards, modifiers):
            if ch in _REVERSE_ESCAPES:
                result += _REVERSE_ESCAPES[ch]
            elif ch < 0x20 or ch == 0x7f:
                # 不可打印字符用\xhh表示
                result += f'\\x{ch:02x}'.encode('ascii')
            else:
                result.append(ch)

        return bytes(result)

    @staticmethod
    def _unescape(input_bytes: bytes) -> bytes:
        """
        解转义字节序列。

        支持 \\E \\b \\f \\t \\r \\n 以及一到两位十六进制数字的 \\xhh；
        其他反斜杠序列原样保留。
        """
        result = bytearray(input_bytes)

        i = 0
        while i < len(result) - 1:
            if result[i] != ord('\\'):
                i += 1
                continue

            replacement = None
            chars_to_remove = 2
            next_char = chr(result[i + 1])

            if next_char in _ESCAPES:
                replacement = _ESCAPES[next_char]
            elif next_char == 'x':
                # 十六进制转义序列 \xhh
                hex_digits = ""
                for offset in (2, 3):
                    if i + offset < len(result) and chr(result[i + offset]) in _HEX_DIGITS:
                        hex_digits += chr(result[i + offset])
                    else:
                        break

                if hex_digits:
                    replacement = int(hex_digits, 16)
                    chars_to_remove = 2 + len(hex_digits)

            if replacement is not None:
                result[i:i + chars_to_remove] = bytes([replacement])
            i += 1

        return bytes(result)

    def _insertModifier(self, item: str, modifier: Qt.KeyboardModifier, name: str) -> str:
        if not (modifier & self._modifier_mask):
            return item

        sign = "+" if modifier & self._modifiers else "-"
        return item + sign + name

    def _insertState(self, item: str, state: KeyboardTranslatorState, name: str) -> str:
        if not (state & self._state_mask):
            return item

        sign = "+" if state & self._state else "-"
        return item + sign + name

    def conditionToString(self) -> str:
        """
        将按键条件转换为文件格式中的按键序列表达式，例如 "Up+Shift-AppScreen"。
        """
        result = QKeySequence(keyCodeValue(self._key_code)).toString(QKeySequence.SequenceFormat.PortableText)

        for modifier, name in MODIFIER_NAMES:
            result = self._insertModifier(result, modifier, name)

        for state, name in STATE_NAMES:
            result = self._insertState(result, state, name)

        return result

    def resultToString(self, expandWildCards: bool = False,
                       modifiers: Qt.KeyboardModifier = Qt.KeyboardModifier.NoModifier) -> str:
        """
        将结果转换为字符串：有文本时返回转义后的文本，否则返回命令名称。

        Args:
            expandWildCards: 是否展开通配符
            modifiers: 修饰键

        Returns:
            str: 结果字符串，既无文本也无命令时为空字符串
        """
        if self._text:
            return self.escapedText(expandWildCards, modifiers).decode('utf-8', errors='replace')

        return COMMAND_NAMES.get(self._command, "")

    def __eq__(self, other) -> bool:
        if not isinstance(other, KeyboardTranslatorEntry):
            return False

        return (self._key_code == other._key_code and
                self._modifiers == other._modifiers and
                self._modifier_mask == other._modifier_mask and
                self._state == other._state and
                self._state_mask == other._state_mask and
                self._command == other._command and
                self._text == other._text)

    def __repr__(self) -> str:
        return (f"KeyboardTranslatorEntry(keyCode={keyCodeValue(self._key_code):#x}, "
                f"condition={self.conditionToString()!r}, "
                f"command={self._command!r}, text={self._text!r})")


# 为了兼容性导出类型别名
States = KeyboardTranslatorState
Commands = KeyboardTranslatorCommand
Entry = KeyboardTranslatorEntry
