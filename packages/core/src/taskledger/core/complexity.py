"""任务复杂度评估

按描述长度、依赖数量、备注长度分别映射等级，取最高者作为最终等级，
再按等级给出执行建议。纯函数，无副作用。
"""

from .models.enums import ComplexityLevel
from .models.results import ComplexityAssessment, ComplexityMetrics
from .models.task import Task

# 各指标达到对应等级的最小值
DESCRIPTION_LENGTH_THRESHOLDS: dict[ComplexityLevel, int] = {
    ComplexityLevel.MEDIUM: 500,
    ComplexityLevel.HIGH: 1000,
    ComplexityLevel.VERY_HIGH: 2000,
}
DEPENDENCIES_COUNT_THRESHOLDS: dict[ComplexityLevel, int] = {
    ComplexityLevel.MEDIUM: 2,
    ComplexityLevel.HIGH: 5,
    ComplexityLevel.VERY_HIGH: 10,
}
NOTES_LENGTH_THRESHOLDS: dict[ComplexityLevel, int] = {
    ComplexityLevel.MEDIUM: 200,
    ComplexityLevel.HIGH: 500,
    ComplexityLevel.VERY_HIGH: 1000,
}

_BASE_RECOMMENDATIONS: dict[ComplexityLevel, list[str]] = {
    ComplexityLevel.LOW: [
        "任务复杂度较低，可直接执行",
        "明确完成标准，便于验收",
    ],
    ComplexityLevel.MEDIUM: [
        "任务有一定复杂度，建议先列出执行步骤",
        "分阶段推进并定期检查进度",
    ],
    ComplexityLevel.HIGH: [
        "任务复杂度较高，执行前先做充分分析与规划",
        "考虑拆分为可独立执行的子任务",
        "设置里程碑与检查点，跟踪进度与质量",
    ],
    ComplexityLevel.VERY_HIGH: [
        "任务复杂度极高，强烈建议拆分为多个独立任务",
        "执行前明确每个子任务的范围与接口",
        "评估风险并准备应对方案",
        "为每个子任务制定具体的测试与验收标准",
    ],
}


def _level_for(value: int, thresholds: dict[ComplexityLevel, int]) -> ComplexityLevel:
    level = ComplexityLevel.LOW
    for candidate, minimum in thresholds.items():
        if value >= minimum:
            level = candidate
    return level


def _recommendations(level: ComplexityLevel, metrics: ComplexityMetrics) -> list[str]:
    recommendations = list(_BASE_RECOMMENDATIONS[level])
    deps = metrics.dependencies_count

    if level == ComplexityLevel.MEDIUM and deps > 0:
        recommendations.append("确认所有依赖任务均已完成且输出质量可靠")
    elif level == ComplexityLevel.HIGH and deps > DEPENDENCIES_COUNT_THRESHOLDS[ComplexityLevel.MEDIUM]:
        recommendations.append("依赖较多，建议画出依赖关系图确认执行顺序")
    elif level == ComplexityLevel.VERY_HIGH:
        if metrics.description_length >= DESCRIPTION_LENGTH_THRESHOLDS[ComplexityLevel.VERY_HIGH]:
            recommendations.append("描述过长，建议提炼要点并整理为结构化清单")
        if deps >= DEPENDENCIES_COUNT_THRESHOLDS[ComplexityLevel.HIGH]:
            recommendations.append("依赖数量过多，建议重新评估任务边界")

    return recommendations


def assess_metrics(
    description_length: int,
    dependencies_count: int,
    notes_length: int,
    has_notes: bool | None = None,
) -> ComplexityAssessment:
    """根据原始指标评估复杂度

    Args:
        description_length: 描述字符数
        dependencies_count: 依赖数量
        notes_length: 备注字符数
        has_notes: 是否有备注，缺省时由 notes_length 推断

    Returns:
        ComplexityAssessment，等级为各指标等级的最大值
    """
    metrics = ComplexityMetrics(
        description_length=description_length,
        dependencies_count=dependencies_count,
        notes_length=notes_length,
        has_notes=notes_length > 0 if has_notes is None else has_notes,
    )
    level = max(
        _level_for(description_length, DESCRIPTION_LENGTH_THRESHOLDS),
        _level_for(dependencies_count, DEPENDENCIES_COUNT_THRESHOLDS),
        _level_for(notes_length, NOTES_LENGTH_THRESHOLDS),
        key=lambda item: item.rank,
    )
    return ComplexityAssessment(
        level=level,
        metrics=metrics,
        recommendations=_recommendations(level, metrics),
    )


def assess_complexity(task: Task) -> ComplexityAssessment:
    """评估单个任务的复杂度"""
    return assess_metrics(
        description_length=len(task.description),
        dependencies_count=len(task.dependencies),
        notes_length=len(task.notes) if task.notes else 0,
        has_notes=bool(task.notes),
    )
