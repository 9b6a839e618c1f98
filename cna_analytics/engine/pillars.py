"""Capability pillar scoring.

An officer's pillar score is the mean of their ratings whose question code
starts with the pillar prefix. Pillars without ratings are skipped for that
officer rather than counted as zero. Organization-wide averages are taken
over contributing officers only, with separate male and female
sub-averages.

Deterministic -- no LLM calls.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from cna_analytics.engine.config import AnalyticsConfig, Pillar
from cna_analytics.models.records import Gender, OfficerRecord
from cna_analytics.models.snapshot import PillarStats, SectorScore

_DEFAULT_CONFIG = AnalyticsConfig()

NO_SECTOR = "N/A"


def _mean(total: float, count: int) -> float:
    return total / count if count > 0 else 0.0


def officer_pillar_scores(
    officer: OfficerRecord,
    pillars: Iterable[Pillar] | None = None,
) -> dict[str, float]:
    """Return {pillar name: mean score} for pillars the officer answered."""
    scores: dict[str, float] = {}
    for pillar in pillars if pillars is not None else _DEFAULT_CONFIG.pillars:
        values = [
            r.current_score
            for r in officer.capability_ratings
            if r.question_code.startswith(pillar.code)
        ]
        if values:
            scores[pillar.name] = sum(values) / len(values)
    return scores


@dataclass
class _Accumulator:
    total: float = 0.0
    count: int = 0
    male_total: float = 0.0
    male_count: int = 0
    female_total: float = 0.0
    female_count: int = 0

    def add(self, score: float, gender: Gender | None) -> None:
        self.total += score
        self.count += 1
        if gender == Gender.MALE:
            self.male_total += score
            self.male_count += 1
        elif gender == Gender.FEMALE:
            self.female_total += score
            self.female_count += 1

    def finalize(self) -> PillarStats:
        return PillarStats(
            avg=_mean(self.total, self.count),
            count=self.count,
            male_avg=_mean(self.male_total, self.male_count),
            male_count=self.male_count,
            female_avg=_mean(self.female_total, self.female_count),
            female_count=self.female_count,
        )


def score_pillars(
    officers: Iterable[OfficerRecord],
    config: AnalyticsConfig | None = None,
) -> dict[str, PillarStats]:
    """Organization-wide pillar statistics, keyed by pillar name in declaration order."""
    cfg = config or _DEFAULT_CONFIG
    accumulators = {p.name: _Accumulator() for p in cfg.pillars}

    for officer in officers:
        for name, score in officer_pillar_scores(officer, cfg.pillars).items():
            accumulators[name].add(score, officer.gender)

    return {name: acc.finalize() for name, acc in accumulators.items()}


def baseline_score(analysis: dict[str, PillarStats]) -> float:
    """Mean of pillar averages over pillars with at least one contributor."""
    averages = [s.avg for s in analysis.values() if s.count > 0]
    return _mean(sum(averages), len(averages))


def extreme_sectors(analysis: dict[str, PillarStats]) -> tuple[SectorScore, SectorScore]:
    """Return (gap sector, peak sector): lowest and highest pillar averages.

    Ties resolve to the pillar declared first. Without data both are "N/A".
    """
    scored = [(name, s.avg) for name, s in analysis.items() if s.count > 0]
    if not scored:
        empty = SectorScore(name=NO_SECTOR, score=0.0)
        return empty, empty

    gap = scored[0]
    peak = scored[0]
    for name, avg in scored[1:]:
        if avg < gap[1]:
            gap = (name, avg)
        if avg > peak[1]:
            peak = (name, avg)
    return SectorScore(name=gap[0], score=gap[1]), SectorScore(name=peak[0], score=peak[1])
