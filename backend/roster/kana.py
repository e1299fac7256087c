"""
Kana row classification and Japanese reading order.

Readings are normalized (whitespace stripped, katakana folded to hiragana)
before lookup. The row table maps every kana the roster can contain onto one of
the ten gojuon row labels used as section markers in the indexed round.
"""

import re
import unicodedata

KANA_ROWS: tuple[tuple[str, str], ...] = (
    ("あ", "あいうえおぁぃぅぇぉ"),
    ("か", "かきくけこがぎぐげご"),
    ("さ", "さしすせそざじずぜぞ"),
    ("た", "たちつてとだぢづでどっ"),
    ("な", "なにぬねの"),
    ("は", "はひふへほばびぶべぼぱぴぷぺぽゔ"),
    ("ま", "まみむめも"),
    ("や", "やゆよゃゅょ"),
    ("ら", "らりるれろ"),
    ("わ", "わをんゐゑ"),
)

ROW_LABELS: tuple[str, ...] = tuple(label for label, _ in KANA_ROWS)

_ROW_BY_CHAR: dict[str, str] = {ch: label for label, chars in KANA_ROWS for ch in chars}

# \s already covers U+3000 (ideographic space)
_WHITESPACE = re.compile(r"\s+")

_KATAKANA_FIRST = ord("ァ")
_KATAKANA_LAST = ord("ン")
_KATAKANA_OFFSET = 0x60

_VOICED_MARK = "\u3099"  # combining dakuten
_SEMI_VOICED_MARK = "\u309a"  # combining handakuten

_SMALL_TO_LARGE: dict[str, str] = dict(zip("ぁぃぅぇぉっゃゅょゎ", "あいうえおつやゆよわ", strict=True))

_LONG_VOWEL_MARK = "ー"

# Gojuon columns, keyed by the vowel that ー repeats after any of their kana.
_VOWEL_COLUMNS: dict[str, str] = {
    "あ": "あかさたなはまやらわ",
    "い": "いきしちにひみりゐ",
    "う": "うくすつぬふむゆる",
    "え": "えけせてねへめれゑ",
    "お": "おこそとのほもよろを",
}
_VOWEL_OF: dict[str, str] = {ch: vowel for vowel, column in _VOWEL_COLUMNS.items() for ch in column}


def normalize_kana(reading: str | None) -> str:
    """Strip all whitespace, including full-width spaces."""
    return _WHITESPACE.sub("", str(reading or ""))


def to_hiragana(text: str) -> str:
    """Fold the katakana block ァ..ン onto hiragana; other characters pass through."""
    return "".join(
        chr(ord(ch) - _KATAKANA_OFFSET) if _KATAKANA_FIRST <= ord(ch) <= _KATAKANA_LAST else ch for ch in text
    )


def classify(reading: str | None) -> str:
    """Return the row label of the first classifiable character, or "" if none."""
    normalized = to_hiragana(normalize_kana(reading))
    for ch in normalized:
        label = _ROW_BY_CHAR.get(ch)
        if label:
            return label
    return ""


def collation_key(reading: str | None) -> tuple[str, str, str, str]:
    """
    Sort key approximating Japanese locale ordering of kana readings.

    Primary level compares base kana only, so voiced and small variants sort
    next to their plain form (かき < がく < きく), and ー counts as the vowel
    it lengthens (まりあ < まりー < まりん). Ties fall back to voicing marks,
    then to small before large kana (きゃく < きやく) with ー after its plain
    vowel, and last to hiragana before katakana.
    """
    text = normalize_kana(reading)
    primary: list[str] = []
    secondary: list[str] = []
    tertiary: list[str] = []
    quaternary: list[str] = []
    for ch in unicodedata.normalize("NFD", text):
        if ch in (_VOICED_MARK, _SEMI_VOICED_MARK):
            if secondary:
                secondary[-1] = ch
            continue
        hira = to_hiragana(ch)
        if hira == _LONG_VOWEL_MARK and primary and primary[-1] in _VOWEL_OF:
            primary.append(_VOWEL_OF[primary[-1]])
            tertiary.append("2")
        else:
            primary.append(_SMALL_TO_LARGE.get(hira, hira))
            tertiary.append("0" if hira in _SMALL_TO_LARGE else "1")
        secondary.append("0")
        quaternary.append("0" if hira == ch else "1")
    return "".join(primary), "".join(secondary), "".join(tertiary), "".join(quaternary)
