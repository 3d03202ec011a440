"""Per-predictor test configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Union

from stratcorr.config import Alternative, ConfigurationError, CorrelationMethod


@dataclass(frozen=True)
class PredictorSpec:
    """Resolved test settings for one predictor."""

    name: str
    method: CorrelationMethod
    directionality: Alternative


def resolve_overrides(
    predictors: List[str],
    default,
    overrides: Optional[Mapping[str, object]],
    field_name: str,
) -> Dict[str, object]:
    """Map every predictor to its override value, falling back to ``default``.

    Args:
        predictors: Resolved predictor names
        default: Value used when a predictor has no override
        overrides: Optional name -> value mapping
        field_name: Name reported in errors

    Returns:
        Dict predictor -> effective value, in predictor order

    Raises:
        ConfigurationError: If an override names an unknown predictor
    """
    overrides = dict(overrides or {})
    unknown = [name for name in overrides if name not in predictors]
    if unknown:
        raise ConfigurationError(
            f"{field_name} names predictors that were not selected: {unknown}",
            field=field_name,
            value=unknown,
        )
    return {name: overrides.get(name, default) for name in predictors}


def resolve_predictor_specs(
    predictors: List[str],
    method: Union[str, CorrelationMethod] = CorrelationMethod.PEARSON,
    method_map: Optional[Mapping[str, Union[str, CorrelationMethod]]] = None,
    directionality: Union[str, Alternative] = Alternative.TWO_SIDED,
    directionality_map: Optional[Mapping[str, Union[str, Alternative]]] = None,
) -> List[PredictorSpec]:
    """Resolve effective method and directionality for each predictor.

    Override entries take precedence over the defaults. Every value, default
    or override, is validated against its enumeration.
    """
    default_method = CorrelationMethod.parse(method, "method")
    default_direction = Alternative.parse(directionality, "directionality")

    methods = resolve_overrides(predictors, default_method, method_map, "method_map")
    directions = resolve_overrides(
        predictors, default_direction, directionality_map, "directionality_map"
    )

    return [
        PredictorSpec(
            name=name,
            method=CorrelationMethod.parse(methods[name], f"method_map[{name!r}]"),
            directionality=Alternative.parse(directions[name], f"directionality_map[{name!r}]"),
        )
        for name in predictors
    ]
