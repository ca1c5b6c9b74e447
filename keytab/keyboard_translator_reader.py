"""
键盘翻译器文件解析模块

键盘翻译器文件的每一行是以下之一：

- keyboard "name"
- key KeySequence : "characters"
- key KeySequence : CommandName

KeySequence 以按键名称开头，后面跟随键盘修饰键和状态标志，
每一项前面的 + 或 - 表示该项必须存在或必须不存在；没有提及的项表示不关心。
按键序列中可以包含空白。

例如:  "key Up+Shift : scrollLineUp"
       "key PgDown-Shift : "\\E[6~"

"#" 之后（引号外）的内容为注释，只包含空白的行会被忽略。
"""

import re
from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, Iterable, Iterator, List, Optional, TextIO, Tuple, Union

from PySide6.QtCore import QCoreApplication, QIODevice, Qt

from keytab.key_names import keyNameToKeyCode
from keytab.keyboard_translator import (
    COMMAND_NAMES,
    KeyboardTranslatorCommand,
    KeyboardTranslatorEntry,
    KeyboardTranslatorState,
)
from keytab.tools import DiagnosticSink, resolveDiagnosticSink

# 内置的后备翻译器，找不到任何翻译器文件时使用
DEFAULT_TRANSLATOR_TEXT = (
    'keyboard "Fallback Key Translator"\n'
    'key Tab : "\\t"'
)

# 修饰键名称表
MODIFIER_TABLE: Dict[str, Qt.KeyboardModifier] = {
    "shift": Qt.KeyboardModifier.ShiftModifier,
    "ctrl": Qt.KeyboardModifier.ControlModifier,
    "control": Qt.KeyboardModifier.ControlModifier,
    "alt": Qt.KeyboardModifier.AltModifier,
    "meta": Qt.KeyboardModifier.MetaModifier,
    "keypad": Qt.KeyboardModifier.KeypadModifier,
}

# 状态标志名称表
STATE_FLAG_TABLE: Dict[str, KeyboardTranslatorState] = {
    "appcukeys": KeyboardTranslatorState.CursorKeysState,
    "appcursorkeys": KeyboardTranslatorState.CursorKeysState,
    "ansi": KeyboardTranslatorState.AnsiState,
    "newline": KeyboardTranslatorState.NewLineState,
    "appscreen": KeyboardTranslatorState.AlternateScreenState,
    "anymod": KeyboardTranslatorState.AnyModifierState,
    "anymodifier": KeyboardTranslatorState.AnyModifierState,
    "appkeypad": KeyboardTranslatorState.ApplicationKeypadState,
}

# 命令名称表，按小写匹配
COMMAND_TABLE: Dict[str, KeyboardTranslatorCommand] = {
    name.lower(): command for command, name in COMMAND_NAMES.items()
}

TITLE_PREFIX = "keyboard"

# 例如:
# key Enter-NewLine                 : "\r"
# key Home        -AnyMod-AppCuKeys : "\E[H"
KEY_LINE_PATTERN = re.compile(r'key\s+(.+?)\s*:\s*("(.*)"|(\w+))')


class TokenType(IntEnum):
    TitleKeyword = 0
    TitleText = 1
    KeyKeyword = 2
    KeySequence = 3
    Command = 4
    OutputText = 5


@dataclass(frozen=True)
class Token:
    """
    键盘翻译器解析标记。
    每行的标记按固定顺序产生：关键字、按键序列或标题、输出文本或命令。
    """
    type: TokenType
    text: str = ""


class SequenceScanState(IntEnum):
    """按键序列扫描器的状态"""
    # 等待下一项开始
    ExpectingItem = 0
    # 正在累积一项的字符
    AccumulatingItem = 1


@dataclass
class DecodedSequence:
    """按键序列表达式的解码结果"""
    keyCode: Union[Qt.Key, int] = Qt.Key.Key_unknown
    modifiers: Qt.KeyboardModifier = Qt.KeyboardModifier.NoModifier
    modifierMask: Qt.KeyboardModifier = Qt.KeyboardModifier.NoModifier
    state: KeyboardTranslatorState = KeyboardTranslatorState.NoState
    stateMask: KeyboardTranslatorState = KeyboardTranslatorState.NoState


def parseAsModifier(item: str) -> Tuple[bool, Qt.KeyboardModifier]:
    """
    解析修饰键。

    Returns:
        tuple: (success, modifier)
    """
    modifier = MODIFIER_TABLE.get(item.lower())
    if modifier is None:
        return (False, Qt.KeyboardModifier.NoModifier)
    return (True, modifier)


def parseAsStateFlag(item: str) -> Tuple[bool, KeyboardTranslatorState]:
    """
    解析状态标志。

    Returns:
        tuple: (success, flag)
    """
    flag = STATE_FLAG_TABLE.get(item.lower())
    if flag is None:
        return (False, KeyboardTranslatorState.NoState)
    return (True, flag)


def parseAsCommand(text: str) -> Tuple[bool, KeyboardTranslatorCommand]:
    """
    解析命令名称，大小写不敏感。

    Returns:
        tuple: (success, command)，失败时命令为 NoCommand
    """
    command = COMMAND_TABLE.get(text.lower())
    if command is None:
        return (False, KeyboardTranslatorCommand.NoCommand)
    return (True, command)


def simplified(text: str) -> str:
    """去除首尾空白，并将内部连续空白合并为一个空格。"""
    return " ".join(text.split())


def stripComment(line: str) -> str:
    """
    移除注释。

    从行尾向行首扫描并记录是否处于引号内，引号外最靠左的 '#'
    是注释的开始；引号内的 '#'（例如输出文本中的字符）会被保留。
    """
    inQuotes = False
    commentPos = -1
    for i in range(len(line) - 1, -1, -1):
        ch = line[i]
        if ch == '"':
            inQuotes = not inQuotes
        elif ch == '#' and not inQuotes:
            commentPos = i

    if commentPos != -1:
        return line[:commentPos]
    return line


def tokenize(line: str, diagnostics: Optional[DiagnosticSink] = None) -> List[Token]:
    """
    解析一行文本为标记。

    无法解析的行返回空列表，不会抛出异常。

    Args:
        line: 一行原始文本
        diagnostics: 诊断输出函数，默认写入包日志

    Returns:
        List[Token]: 标题行为 [TitleKeyword, TitleText]，
                     按键行为 [KeyKeyword, KeySequence, OutputText 或 Command]
    """
    diagnostics = resolveDiagnosticSink(diagnostics)

    text = simplified(stripComment(line))
    if not text:
        return []

    # 例如:
    # keyboard "Default (XFree 4)"
    if text.startswith(TITLE_PREFIX):
        title = simplified(text[len(TITLE_PREFIX):].replace('"', ''))
        if not title:
            return []
        return [Token(TokenType.TitleKeyword), Token(TokenType.TitleText, title)]

    keyMatch = KEY_LINE_PATTERN.search(text)
    if keyMatch is None:
        diagnostics(f"Line in keyboard translator file could not be parsed: {text}")
        return []

    tokens = [
        Token(TokenType.KeyKeyword),
        Token(TokenType.KeySequence, keyMatch.group(1).replace(' ', '')),
    ]

    # 引号内的文本为空时（: ""）按命令处理，命令名称为空
    outputText = keyMatch.group(3)
    if outputText:
        tokens.append(Token(TokenType.OutputText, outputText))
    else:
        tokens.append(Token(TokenType.Command, keyMatch.group(4) or ""))

    return tokens


def decodeSequence(text: str,
                   initial: Optional[DecodedSequence] = None,
                   diagnostics: Optional[DiagnosticSink] = None) -> DecodedSequence:
    """
    解码按键序列表达式，例如 "home-anymod-appcukeys"。

    每一项按 修饰键 -> 状态标志 -> 按键名称 的顺序识别；项之前的 '+'
    表示必须存在，'-' 表示必须不存在，第一项总是视为必须存在。
    无法识别的项只输出诊断信息。出现多个按键名称时后出现的生效。

    Args:
        text: 已转换为小写且去除空格的按键序列
        initial: 累加的初始值，默认全部为零
        diagnostics: 诊断输出函数，默认写入包日志

    Returns:
        DecodedSequence: 键码、修饰键（值, 掩码）和状态标志（值, 掩码）
    """
    diagnostics = resolveDiagnosticSink(diagnostics)
    result = DecodedSequence() if initial is None else DecodedSequence(
        initial.keyCode, initial.modifiers, initial.modifierMask, initial.state, initial.stateMask)

    scanState = SequenceScanState.ExpectingItem
    isWanted = True
    keySeen = False
    buffer = ""
    lastIndex = len(text) - 1

    for i, ch in enumerate(text):
        endOfItem = True
        if ch.isalnum():
            endOfItem = False
            buffer += ch
            scanState = SequenceScanState.AccumulatingItem
        elif i == 0:
            # 以标点开头的按键名称，例如单独的 "+"
            buffer += ch
            scanState = SequenceScanState.AccumulatingItem

        if (endOfItem or i == lastIndex) and scanState == SequenceScanState.AccumulatingItem:
            found, modifier = parseAsModifier(buffer)
            if found:
                result.modifierMask |= modifier
                if isWanted:
                    result.modifiers |= modifier
            else:
                found, flag = parseAsStateFlag(buffer)
                if found:
                    result.stateMask |= flag
                    if isWanted:
                        result.state |= flag
                else:
                    found, keyCode = keyNameToKeyCode(buffer, diagnostics)
                    if found:
                        if keySeen:
                            diagnostics(f"Key binding item {buffer} replaces an earlier key name")
                        result.keyCode = keyCode
                        keySeen = True
                    else:
                        diagnostics(f"Unable to parse key binding item: {buffer}")

            buffer = ""
            scanState = SequenceScanState.ExpectingItem

        # 更新下一项的需要/不需要标志
        if ch == '+':
            isWanted = True
        elif ch == '-':
            isWanted = False

    return result


class _LineSource:
    """
    按行读取的数据源。
    支持字符串、字节串、QIODevice、文件对象以及任意行的可迭代对象。
    """

    def __init__(self, source: Union[QIODevice, TextIO, str, bytes, Iterable]):
        self._device: Optional[QIODevice] = None
        self._lines: Optional[Iterator] = None

        if isinstance(source, bytes):
            source = source.decode('utf-8', errors='replace')

        if isinstance(source, str):
            # 只按 '\n' 分行，与 QIODevice.readLine() 一致
            self._lines = iter(source.split('\n'))
        elif isinstance(source, QIODevice):
            self._device = source
        else:
            self._lines = iter(source)

    def readLine(self) -> Optional[str]:
        """读取下一行，到达末尾时返回None"""
        if self._device is not None:
            if self._device.atEnd():
                return None
            line = self._device.readLine().data()
        else:
            line = next(self._lines, None)
            if line is None:
                return None

        if isinstance(line, (bytes, bytearray)):
            line = bytes(line).decode('utf-8', errors='replace')
        return line.rstrip('\r\n')


class _ReaderState(IntEnum):
    # 正在查找标题行
    SeekingTitle = 0
    # 已读入下一个条目
    HasEntry = 1
    # 数据源中没有更多条目
    Exhausted = 2


class KeyboardTranslatorReader:
    """
    键盘翻译器文件解析器。

    构造时读取标题（描述），并预先解析第一个条目；
    每次调用 nextEntry() 返回已解析的条目并预读下一个。
    """

    def __init__(self, source: Union[QIODevice, TextIO, str, bytes, Iterable],
                 diagnostics: Optional[DiagnosticSink] = None):
        """
        Args:
            source: 数据源（字符串、QIODevice、文件对象或行的可迭代对象）
            diagnostics: 诊断输出函数，默认写入包日志
        """
        self._source = _LineSource(source)
        self._diagnostics = resolveDiagnosticSink(diagnostics)
        self._description = ""
        self._state = _ReaderState.SeekingTitle
        self._nextEntry = KeyboardTranslatorEntry()

        # 读取描述
        self._readDescription()
        # 读取第一个条目
        self._readNext()

    def _readDescription(self):
        """读取输入直到找到描述信息或到达末尾"""
        while not self._description:
            line = self._source.readLine()
            if line is None:
                break

            tokens = tokenize(line, self._diagnostics)
            if tokens and tokens[0].type == TokenType.TitleKeyword:
                self._description = QCoreApplication.translate("KeyboardTranslatorReader", tokens[1].text)

    def _readNext(self):
        """查找下一个按键行并解码为条目"""
        while True:
            line = self._source.readLine()
            if line is None:
                break

            tokens = tokenize(line, self._diagnostics)
            if tokens and tokens[0].type == TokenType.KeyKeyword:
                self._nextEntry = self._createEntryFromTokens(tokens)
                self._state = _ReaderState.HasEntry
                return

        self._state = _ReaderState.Exhausted

    def _createEntryFromTokens(self, tokens: List[Token]) -> KeyboardTranslatorEntry:
        decoded = decodeSequence(tokens[1].text.lower(), diagnostics=self._diagnostics)

        command = KeyboardTranslatorCommand.NoCommand
        text = b""

        # 获取文本或命令
        if tokens[2].type == TokenType.OutputText:
            text = tokens[2].text.encode('utf-8')
        elif tokens[2].type == TokenType.Command:
            found, command = parseAsCommand(tokens[2].text)
            if not found:
                self._diagnostics(f"Key {tokens[1].text}, Command {tokens[2].text} not understood.")

        newEntry = KeyboardTranslatorEntry()
        newEntry.setKeyCode(decoded.keyCode)
        newEntry.setState(decoded.state)
        newEntry.setStateMask(decoded.stateMask)
        newEntry.setModifiers(decoded.modifiers)
        newEntry.setModifierMask(decoded.modifierMask)
        newEntry.setText(text)
        newEntry.setCommand(command)
        return newEntry

    def description(self) -> str:
        """返回描述文本，文件中没有标题行时为空字符串。"""
        return self._description

    def hasNextEntry(self) -> bool:
        return self._state == _ReaderState.HasEntry

    def nextEntry(self) -> KeyboardTranslatorEntry:
        """
        返回下一个条目并预读之后的条目。
        调用前必须先检查 hasNextEntry()。
        """
        assert self.hasNextEntry(), "没有可读取的条目"

        entry = self._nextEntry
        self._readNext()
        return entry

    def parseError(self) -> bool:
        """
        返回是否有解析错误。
        解析按行进行，格式错误的行只会被跳过，因此总是返回False。
        """
        return False

    def __iter__(self) -> Iterator[KeyboardTranslatorEntry]:
        while self.hasNextEntry():
            yield self.nextEntry()

    @staticmethod
    def createEntry(condition: str, result: str,
                    diagnostics: Optional[DiagnosticSink] = None) -> KeyboardTranslatorEntry:
        """
        根据条件和结果创建条目。

        如果 result 是命令名称，条目的结果就是该命令；
        否则 result 作为按下按键时发送的文本。

        Args:
            condition: 按键序列表达式，例如 "Up+Shift"
            result: 命令名称或输出文本

        Returns:
            KeyboardTranslatorEntry: 解析得到的条目，无法解析时为空条目
        """
        entryString = f'keyboard "temporary"\nkey {condition} : '

        isCommand, _ = parseAsCommand(result)
        if isCommand:
            entryString += result
        else:
            entryString += f'"{result}"'

        reader = KeyboardTranslatorReader(entryString, diagnostics)

        if reader.hasNextEntry():
            return reader.nextEntry()

        return KeyboardTranslatorEntry()
