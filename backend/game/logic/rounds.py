"""Round catalogue and display helpers shared by the session and the HTTP view."""

from pydantic import BaseModel


class RoundConfig(BaseModel, frozen=True):
    round_no: int
    round_label: str
    header_label: str
    algorithm: str
    task: str
    pane_title: str


ROUND_CONFIG: dict[int, RoundConfig] = {
    1: RoundConfig(
        round_no=1,
        round_label="ラウンド1",
        header_label="ラウンド1：単純前方探索「こばやし　ゆうじ　を探せ！」",
        algorithm="単純前方探索",
        task="こばやし　ゆうじ　を探せ！",
        pane_title="名簿（ラウンド1：ランダム順）",
    ),
    2: RoundConfig(
        round_no=2,
        round_label="ラウンド2",
        header_label="ラウンド2：改良型前方探索「こばやし　ゆうじ　を探せ！」",
        algorithm="改良型前方探索",
        task="こばやし　ゆうじ　を探せ！",
        pane_title="名簿（ラウンド2：かな順＋インデクス）",
    ),
    3: RoundConfig(
        round_no=3,
        round_label="ラウンド3",
        header_label="ラウンド3：二分探索「おいえ　ゆういち　を探せ！」",
        algorithm="二分探索",
        task="おいえ　ゆういち　を探せ！",
        pane_title="名簿（ラウンド3：かな順）",
    ),
    4: RoundConfig(
        round_no=4,
        round_label="ラウンドFINAL",
        header_label="ラウンドFINAL：二分探索「ジブン　を探せ！」",
        algorithm="二分探索",
        task="ジブン　を探せ！",
        pane_title="名簿（ラウンドFINAL：かな順）",
    ),
}


def format_clear_time(ms: float | None) -> str:
    """Format milliseconds as mm:ss.mmm; None renders as a placeholder."""
    if ms is None:
        return "--:--.---"
    total = max(0, int(ms))
    minutes, rest = divmod(total, 60_000)
    seconds, millis = divmod(rest, 1000)
    return f"{minutes:02d}:{seconds:02d}.{millis:03d}"


def split_display_name(display_name: str | None) -> tuple[str, str]:
    """Split a ranking display name "<no> <name>" at its first space."""
    text = str(display_name or "").strip()
    if not text:
        return "", ""
    no, sep, name = text.partition(" ")
    if not sep:
        return "", text
    return no.strip(), name.strip()
