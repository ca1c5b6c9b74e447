"""
keytab - 键盘翻译器（.keytab）文件解析包

将键盘翻译器文件中的按键绑定解析为条目：
按键码、修饰键（值, 掩码）、终端状态标志（值, 掩码），
以及要发送的文本或要执行的命令。
"""

from .tools import (
    keytabLogger,
    keytab_logger,
    logDiagnostic,
    KEYTAB_LOG_LEVEL,
)

from .keyboard_translator import (
    KeyboardTranslatorState,
    KeyboardTranslatorCommand,
    KeyboardTranslatorEntry,
    # 兼容性别名
    States,
    Commands,
    Entry,
)

from .key_names import keyNameToKeyCode, key_name_to_key_code

from .keyboard_translator_reader import (
    DEFAULT_TRANSLATOR_TEXT,
    DecodedSequence,
    KeyboardTranslatorReader,
    Token,
    TokenType,
    decodeSequence,
    parseAsCommand,
    tokenize,
)

from .keyboard_translator_writer import KeyboardTranslatorWriter

from .version import VERSION, get_version

__version__ = VERSION
