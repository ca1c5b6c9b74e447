"""
键盘翻译器文件写入模块

将描述和条目写回键盘翻译器文件格式，写出的内容可以被
KeyboardTranslatorReader 重新解析为相同的条目。
"""

from typing import TextIO, Union

from PySide6.QtCore import QIODevice, Qt

from keytab.keyboard_translator import KeyboardTranslatorCommand, KeyboardTranslatorEntry, keyCodeValue
from keytab.tools import keytabLogger


class KeyboardTranslatorWriter:
    """键盘翻译器文件写入器。"""

    def __init__(self, destination: Union[QIODevice, TextIO]):
        """
        Args:
            destination: 输出目标（可写的QIODevice或文本文件对象）
        """
        self._destination = destination

    def _write(self, text: str):
        if isinstance(self._destination, QIODevice):
            # QIODevice按字节写入，文件使用UTF-8编码
            self._destination.write(text.encode('utf-8'))
        else:
            self._destination.write(text)

    def writeHeader(self, description: str):
        """
        写入头部信息。

        Args:
            description: 描述
        """
        self._write(f'keyboard "{description}"\n')

    def writeEntry(self, entry: KeyboardTranslatorEntry) -> bool:
        """
        写入条目。命令原样写出，文本写在引号内。

        没有解析出按键的条目（键码为0或Key_unknown）无法写成可以重新
        读取的按键序列，这类条目会被跳过。

        Args:
            entry: 要写入的条目

        Returns:
            bool: 是否写入了该条目
        """
        if keyCodeValue(entry.keyCode()) in (0, Qt.Key.Key_unknown.value):
            keytabLogger.debug(f"Skipping entry without a key code: {entry!r}")
            return False

        if entry.command() != KeyboardTranslatorCommand.NoCommand:
            result = entry.resultToString()
        else:
            result = f'"{entry.resultToString()}"'

        self._write(f"key {entry.conditionToString()} : {result}\n")
        return True
