"""Bucket key shared by the ledger, its repositories and the lock table."""

from __future__ import annotations

from dataclasses import dataclass

from banca.modalities import Modality, Pick, canonical_pick, parse_modality


@dataclass(frozen=True, order=True)
class BucketKey:
    """(modality, prize tier, number, lottery, draw time).

    ``None`` lottery/draw time normalize to ``""``.
    """

    modality: str
    prize_tier: int
    number: str
    lottery: str = ""
    draw_time: str = ""

    @classmethod
    def of(
        cls,
        modality: str | Modality,
        prize_tier: int,
        number: Pick,
        lottery: str | None = None,
        draw_time: str | None = None,
    ) -> "BucketKey":
        mod = parse_modality(modality)
        return cls(
            modality=mod.value,
            prize_tier=int(prize_tier),
            number=canonical_pick(mod, number),
            lottery=(lottery or "").strip(),
            draw_time=(draw_time or "").strip(),
        )

    def as_filter(self) -> dict[str, object]:
        return {
            "modality": self.modality,
            "prize_tier": self.prize_tier,
            "number": self.number,
            "lottery": self.lottery,
            "draw_time": self.draw_time,
        }

    def describe_draw(self) -> str:
        parts = [p for p in (self.lottery, self.draw_time) if p]
        return " ".join(parts) if parts else "extração"
