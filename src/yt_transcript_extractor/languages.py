"""Caption language selection."""

from collections.abc import Iterable
from dataclasses import dataclass

from yt_transcript_extractor.config import Settings


@dataclass(frozen=True)
class LanguagePolicy:
    """Ordered language preference shared by every caption source.

    The chain is ``[target, target-REGION, fallback, fallback-REGION]``.
    Without a fallback language, a video lacking the target language has
    no acceptable captions.
    """

    target: str = "ja"
    target_region: str = "JP"
    fallback: str = ""
    fallback_region: str = ""

    @classmethod
    def from_settings(cls, settings: Settings) -> "LanguagePolicy":
        return cls(
            target=settings.language,
            target_region=settings.language_region,
            fallback=settings.fallback_language,
            fallback_region=settings.fallback_region,
        )

    def bases(self) -> list[str]:
        return [b for b in (self.target, self.fallback) if b]

    def chain(self) -> list[str]:
        codes = []
        for base, region in ((self.target, self.target_region), (self.fallback, self.fallback_region)):
            if not base:
                continue
            codes.append(base)
            if region:
                codes.append(f"{base}-{region}")
        return list(dict.fromkeys(codes))

    def match(self, available: Iterable[str]) -> str | None:
        """Best code from ``available`` for this policy, or None."""
        available = list(available)
        for base in self.bases():
            candidates = [c for c in self.chain() if c == base or c.startswith(f"{base}-")]
            for code in candidates:
                if code in available:
                    return code
            for code in available:
                if code.startswith(f"{base}-"):
                    return code
        return None

    def select(
        self, manual: Iterable[str], automatic: Iterable[str]
    ) -> tuple[str, bool] | None:
        """Choose ``(code, is_auto_generated)``.

        Manual captions beat auto-generated ones for the same language, but
        an auto-generated target beats a manual fallback.
        """
        manual = list(manual)
        automatic = list(automatic)
        for base in self.bases():
            narrowed = LanguagePolicy(target=base, target_region=self._region_for(base))
            code = narrowed.match(manual)
            if code:
                return code, False
            code = narrowed.match(automatic)
            if code:
                return code, True
        return None

    def _region_for(self, base: str) -> str:
        return self.target_region if base == self.target else self.fallback_region
