import io

import pytest
from PySide6.QtCore import QBuffer, QByteArray, QIODevice, Qt

from keytab.keyboard_translator import KeyboardTranslatorCommand as Command
from keytab.keyboard_translator import KeyboardTranslatorEntry
from keytab.keyboard_translator import KeyboardTranslatorState as State
from keytab.keyboard_translator_reader import DEFAULT_TRANSLATOR_TEXT, KeyboardTranslatorReader

SAMPLE = """\
# sample translator
keyboard "Default (XFree 4)"

key Escape : "\\E"
key Tab    : "\\t"   # tab
key Home -AnyMod -AppCuKeys : "\\E[H"

# scrolling
key Up+Shift : scrollLineUp
key PgUp+Shift : ScrollPageUp
this line is junk
key Backspace : "\\x7f"
"""


def test_empty_source() -> None:
    reader = KeyboardTranslatorReader("")

    assert reader.description() == ""
    assert not reader.hasNextEntry()


def test_title_without_entries() -> None:
    reader = KeyboardTranslatorReader('keyboard "Only A Title"\n# nothing else\n')

    assert reader.description() == "Only A Title"
    assert not reader.hasNextEntry()


def test_entries_in_file_order() -> None:
    reader = KeyboardTranslatorReader(SAMPLE)
    entries = list(reader)

    assert reader.description() == "Default (XFree 4)"
    assert [entry.keyCode() for entry in entries] == [
        Qt.Key.Key_Escape,
        Qt.Key.Key_Tab,
        Qt.Key.Key_Home,
        Qt.Key.Key_Up,
        Qt.Key.Key_PageUp,
        Qt.Key.Key_Backspace,
    ]
    assert not reader.hasNextEntry()


def test_entry_fields() -> None:
    entries = list(KeyboardTranslatorReader(SAMPLE))

    assert entries[0].text() == b"\x1b"
    assert entries[1].text() == b"\t"

    home = entries[2]
    assert home.text() == b"\x1b[H"
    assert home.stateMask() == State.AnyModifierState | State.CursorKeysState
    assert home.state() == State.NoState

    assert entries[3].command() == Command.ScrollLineUpCommand
    assert entries[3].modifiers() == Qt.KeyboardModifier.ShiftModifier
    assert entries[3].text() == b""
    assert entries[4].command() == Command.ScrollPageUpCommand
    assert entries[5].text() == b"\x7f"


def test_next_entry_requires_available_entry() -> None:
    reader = KeyboardTranslatorReader('keyboard "x"')

    with pytest.raises(AssertionError):
        reader.nextEntry()


def test_has_next_entry_has_no_side_effects() -> None:
    reader = KeyboardTranslatorReader('keyboard "x"\nkey Tab : "\\t"\n')

    assert reader.hasNextEntry()
    assert reader.hasNextEntry()
    reader.nextEntry()
    assert not reader.hasNextEntry()


def test_only_first_title_is_kept() -> None:
    reader = KeyboardTranslatorReader('keyboard "First"\nkeyboard "Second"\nkey Tab : "\\t"\n')

    assert reader.description() == "First"
    assert len(list(reader)) == 1


def test_key_lines_before_title_are_consumed_by_title_search() -> None:
    reader = KeyboardTranslatorReader('key Tab : "\\t"\nkeyboard "Late"\nkey Up : "\\E[A"\n')

    assert reader.description() == "Late"
    assert [entry.keyCode() for entry in reader] == [Qt.Key.Key_Up]


def test_command_names_are_case_insensitive() -> None:
    lower = KeyboardTranslatorReader.createEntry("Up+Shift", "scrolllineup")
    upper = KeyboardTranslatorReader.createEntry("Up+Shift", "SCROLLLINEUP")

    assert upper.command() == Command.ScrollLineUpCommand
    assert lower == upper


@pytest.mark.parametrize("name, command", [
    ("erase", Command.EraseCommand),
    ("scrollPageDown", Command.ScrollPageDownCommand),
    ("scrollLineDown", Command.ScrollLineDownCommand),
    ("scrollUpToTop", Command.ScrollUpToTopCommand),
    ("scrollDownToBottom", Command.ScrollDownToBottomCommand),
    ("scrollPromptUp", Command.ScrollPromptUpCommand),
    ("scrollPromptDown", Command.ScrollPromptDownCommand),
])
def test_all_commands(name, command) -> None:
    reader = KeyboardTranslatorReader(f'keyboard "t"\nkey F1 : {name}\n')

    assert reader.nextEntry().command() == command


def test_unknown_command_gives_do_nothing_entry(diagnostics) -> None:
    reader = KeyboardTranslatorReader('keyboard "t"\nkey F1 : scrollSideways\n', diagnostics)
    entry = reader.nextEntry()

    assert entry.keyCode() == Qt.Key.Key_F1
    assert entry.command() == Command.NoCommand
    assert entry.text() == b""
    assert any("scrollSideways" in message for message in diagnostics)


def test_empty_quoted_output_gives_do_nothing_entry() -> None:
    entry = KeyboardTranslatorReader('keyboard "t"\nkey F1 : ""\n').nextEntry()

    assert entry.command() == Command.NoCommand
    assert entry.text() == b""


def test_create_entry_matches_parsed_line() -> None:
    created = KeyboardTranslatorReader.createEntry("Up+Shift", "scrollLineUp")
    parsed = KeyboardTranslatorReader('keyboard "t"\nkey Up+Shift : scrollLineUp\n').nextEntry()

    assert created == parsed


def test_create_entry_quotes_text_results() -> None:
    entry = KeyboardTranslatorReader.createEntry("Home-AnyMod", "\\E[H")

    assert entry.command() == Command.NoCommand
    assert entry.text() == b"\x1b[H"
    assert entry.stateMask() == State.AnyModifierState


def test_create_entry_with_unparseable_condition_is_null() -> None:
    assert KeyboardTranslatorReader.createEntry("", "erase").isNull()


def test_default_translator_text() -> None:
    reader = KeyboardTranslatorReader(DEFAULT_TRANSLATOR_TEXT)

    assert reader.description() == "Fallback Key Translator"
    entry = reader.nextEntry()
    assert entry.keyCode() == Qt.Key.Key_Tab
    assert entry.text() == b"\t"
    assert not reader.hasNextEntry()


def test_text_file_source() -> None:
    reader = KeyboardTranslatorReader(io.StringIO(SAMPLE))

    assert len(list(reader)) == 6


def test_binary_file_source(tmp_path) -> None:
    path = tmp_path / "default.keytab"
    path.write_text(SAMPLE, encoding="utf-8")

    with open(path, "rb") as source:
        reader = KeyboardTranslatorReader(source)
        entries = list(reader)

    assert reader.description() == "Default (XFree 4)"
    assert len(entries) == 6


def test_qiodevice_source() -> None:
    buffer = QBuffer()
    buffer.setData(QByteArray(SAMPLE.encode("utf-8")))
    assert buffer.open(QIODevice.OpenModeFlag.ReadOnly)

    reader = KeyboardTranslatorReader(buffer)

    assert reader.description() == "Default (XFree 4)"
    assert len(list(reader)) == 6


def test_iterable_of_lines_source() -> None:
    lines = ['keyboard "Lines"', 'key Left : "\\E[D"', 'key Right : "\\E[C"']
    entries = list(KeyboardTranslatorReader(lines))

    assert [entry.keyCode() for entry in entries] == [Qt.Key.Key_Left, Qt.Key.Key_Right]


def test_parse_error_is_never_reported() -> None:
    assert KeyboardTranslatorReader("garbage\nmore garbage").parseError() is False


def test_null_entry() -> None:
    assert KeyboardTranslatorEntry().isNull()
    assert not KeyboardTranslatorReader.createEntry("Tab", "\\t").isNull()


def test_string_source_splits_on_newline_only() -> None:
    source = 'keyboard "t"\nkey F1 : "a\x0cb"\r\nkey F2 : "c\x1ed"\n'
    entries = list(KeyboardTranslatorReader(source))

    assert [entry.keyCode() for entry in entries] == [Qt.Key.Key_F1, Qt.Key.Key_F2]
    # 行内的空白字符在分词时被合并为空格
    assert entries[0].text() == b"a b"
