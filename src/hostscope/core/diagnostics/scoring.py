"""
Health Scoring

Turns hardware facts, event analysis and the reliability record count into
a PerformanceAnalysis: four sub-scores, a weighted aggregate, a grade and a
list of recommendations.

Every threshold lives in a named table below so it can be tested and tuned
on its own. All scores are in [0, 100]; higher is better.

Usage:
    from hostscope.core.diagnostics.scoring import ScoreEngine

    engine = ScoreEngine()
    analysis = engine.analyze(hardware, event_analysis, reliability_count=12)
    print(analysis.system_health_score, analysis.health_grade)
"""

import logging
from typing import List, NamedTuple, Optional, Sequence, Tuple

from .models import GIB, DiskRecord, EventAnalysis, HardwareSnapshot, PerformanceAnalysis

logger = logging.getLogger(__name__)


class Band(NamedTuple):
    """Value awarded when the measured quantity reaches ``threshold``."""
    threshold: float
    value: float
    advice: Optional[str] = None


class Grade(NamedTuple):
    threshold: float
    label: str
    color: str


# =============================================================================
# Threshold tables
# =============================================================================

# Memory score, by total GB (inclusive thresholds)
MEMORY_BANDS = (
    Band(16, 90),
    Band(8, 75),
    Band(4, 60, "Memory capacity is low; consider upgrading to 8GB or more to improve performance"),
)
MEMORY_FLOOR = Band(0, 40, "Memory capacity is severely insufficient; upgrading to 8GB or more is strongly recommended")

# Per-disk score, by free-space percent (exclusive thresholds)
DISK_BANDS = (
    Band(50, 90),
    Band(25, 75),
    Band(10, 60, "Disk {name} is running low on free space ({percent}%); consider cleaning up"),
)
DISK_FLOOR = Band(0, 30, "Disk {name} is critically low on free space ({percent}%); free up space immediately")
NO_DISKS = Band(0, 50, "No disk information was detected; check disk connections")

# Stability deductions: (per-item penalty, cap)
ERROR_PENALTY = (2.0, 40.0)
WARNING_PENALTY = (0.5, 20.0)
CRITICAL_PENALTY = (10.0, 30.0)
RELIABILITY_RECORD_LIMIT = 50
RELIABILITY_PENALTY = Band(RELIABILITY_RECORD_LIMIT, -10,
                           "Many reliability records were logged; check system stability")

# Performance score
PERFORMANCE_BASE = 50.0
CORE_BONUS_BANDS = (
    Band(8, 20),
    Band(4, 15),
    Band(2, 5),
)
CORE_BONUS_FLOOR = Band(0, -10, "Low CPU core count may limit multitasking performance")
MEMORY_BONUS_BANDS = (
    Band(16, 15),
    Band(8, 10),
    Band(4, 5),
)
MEMORY_BONUS_FLOOR = Band(0, -5)

# (vendor, ((model fragments, bonus), ...)); first matching tier wins
CPU_BRAND_TIERS: Tuple[Tuple[str, Tuple[Tuple[Tuple[str, ...], float], ...]], ...] = (
    ("intel", (
        (("i9", "xeon"), 15),
        (("i7",), 10),
        (("i5",), 5),
    )),
    ("amd", (
        (("ryzen 9", "threadripper"), 15),
        (("ryzen 7",), 10),
        (("ryzen 5",), 5),
    )),
)

# Aggregate weights; they sum to 1.0
STABILITY_WEIGHT = 0.4
PERFORMANCE_WEIGHT = 0.3
MEMORY_WEIGHT = 0.15
DISK_WEIGHT = 0.15

HEALTH_GRADES = (
    Grade(90, "Excellent", "#4CAF50"),
    Grade(75, "Good", "#8BC34A"),
    Grade(60, "Fair", "#FFC107"),
    Grade(40, "Poor", "#FF9800"),
)
HEALTH_GRADE_FLOOR = Grade(0, "Critical", "#F44336")

LOW_HEALTH_THRESHOLD = 60.0
CRITICAL_EVENTS_ADVICE = "Found {count} critical system error(s); review the system event log immediately"
LOW_HEALTH_ADVICE = "System health score is low; a full system maintenance pass is recommended"


# =============================================================================
# Scoring functions
# =============================================================================

def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def pick_band(value: float, bands: Sequence[Band], floor: Band, inclusive: bool = True) -> Band:
    """Return the first band whose threshold ``value`` reaches, else ``floor``."""
    for band in bands:
        if value >= band.threshold if inclusive else value > band.threshold:
            return band
    return floor


def memory_gb(total_memory: int) -> float:
    return total_memory / GIB


def score_memory(total_memory_gb: float) -> Tuple[float, List[str]]:
    band = pick_band(total_memory_gb, MEMORY_BANDS, MEMORY_FLOOR)
    return band.value, [band.advice] if band.advice else []


def score_disks(disks: Sequence[DiskRecord]) -> Tuple[float, List[str]]:
    """Mean of per-disk scores; a fixed score when no disks are known."""
    if not disks:
        return NO_DISKS.value, [NO_DISKS.advice]

    total = 0.0
    advice = []
    for disk in disks:
        percent = disk.free_percent
        band = pick_band(percent, DISK_BANDS, DISK_FLOOR, inclusive=False)
        total += band.value
        if band.advice:
            advice.append(band.advice.format(name=disk.name, percent=round(percent)))
    return total / len(disks), advice


def score_stability(
    error_count: int,
    warning_count: int,
    critical_count: int,
    reliability_count: int,
) -> Tuple[float, List[str]]:
    score = 100.0
    score -= min(error_count * ERROR_PENALTY[0], ERROR_PENALTY[1])
    score -= min(warning_count * WARNING_PENALTY[0], WARNING_PENALTY[1])
    score -= min(critical_count * CRITICAL_PENALTY[0], CRITICAL_PENALTY[1])

    advice = []
    if reliability_count > RELIABILITY_PENALTY.threshold:
        score += RELIABILITY_PENALTY.value
        advice.append(RELIABILITY_PENALTY.advice)
    return max(score, 0.0), advice


def cpu_brand_bonus(cpu_brand: str) -> float:
    lowered = (cpu_brand or "").lower()
    for vendor, tiers in CPU_BRAND_TIERS:
        if vendor not in lowered:
            continue
        for fragments, bonus in tiers:
            if any(f in lowered for f in fragments):
                return bonus
        return 0.0
    return 0.0


def score_performance(cpu_cores: int, cpu_brand: str, total_memory_gb: float) -> Tuple[float, List[str]]:
    core_band = pick_band(cpu_cores, CORE_BONUS_BANDS, CORE_BONUS_FLOOR)
    memory_band = pick_band(total_memory_gb, MEMORY_BONUS_BANDS, MEMORY_BONUS_FLOOR)

    score = PERFORMANCE_BASE + core_band.value + cpu_brand_bonus(cpu_brand) + memory_band.value
    advice = [core_band.advice] if core_band.advice else []
    return clamp(score), advice


def aggregate_score(stability: float, performance: float, memory: float, disk: float) -> float:
    return clamp(
        stability * STABILITY_WEIGHT
        + performance * PERFORMANCE_WEIGHT
        + memory * MEMORY_WEIGHT
        + disk * DISK_WEIGHT
    )


def grade_for(score: float) -> Grade:
    for grade in HEALTH_GRADES:
        if score >= grade.threshold:
            return grade
    return HEALTH_GRADE_FLOOR


class ScoreEngine:
    """Pure scoring over collected data; holds no state between calls."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def analyze(
        self,
        hardware: HardwareSnapshot,
        events: EventAnalysis,
        reliability_count: int,
    ) -> PerformanceAnalysis:
        gb = memory_gb(hardware.total_memory)
        recommendations: List[str] = []

        memory, advice = score_memory(gb)
        recommendations += advice

        disk, advice = score_disks(hardware.disks)
        recommendations += advice

        stability, advice = score_stability(
            events.error_count, events.warning_count, events.critical_count, reliability_count
        )
        recommendations += advice

        performance, advice = score_performance(hardware.cpu_cores, hardware.cpu_brand, gb)
        recommendations += advice

        health = aggregate_score(stability, performance, memory, disk)

        if events.critical_count > 0:
            recommendations.append(CRITICAL_EVENTS_ADVICE.format(count=events.critical_count))
        if health < LOW_HEALTH_THRESHOLD:
            recommendations.append(LOW_HEALTH_ADVICE)

        grade = grade_for(health)
        self.logger.info(
            f"Health {health:.1f} ({grade.label}): stability={stability:.1f} "
            f"performance={performance:.1f} memory={memory:.1f} disk={disk:.1f}"
        )

        return PerformanceAnalysis(
            system_health_score=health,
            stability_score=stability,
            performance_score=performance,
            memory_usage_score=memory,
            disk_health_score=disk,
            critical_issues_count=events.critical_count,
            warnings_count=events.warning_count,
            recommendations=recommendations,
            health_grade=grade.label,
            health_color=grade.color,
        )
