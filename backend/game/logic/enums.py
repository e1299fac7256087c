from enum import StrEnum


class PlayPhase(StrEnum):
    IDLE = "idle"
    PLAYING = "playing"
    CLEARED = "cleared"


class MatchStatus(StrEnum):
    MATCHED = "matched"
    UNMATCHED = "unmatched"


class Screen(StrEnum):
    TITLE = "title"
    GAME = "game"
    RESULT = "result"


class Notice(StrEnum):
    """Blocking or persistent notices shown to the player, with their display text."""

    NONE = ""
    MISSING_ID = "URLの末尾に「#id=ユーザID」を指定してください。"
    LOADING = "名簿データを読み込み中です。"
    UNKNOWN_ID = "名簿に存在しないユーザIDです。"
    DATA_UNAVAILABLE = "名簿データの読み込みに失敗しました。"
    IDENTITY_CHANGED = "ユーザIDが変更されました。もう一度「はじめる」を押してください。"
