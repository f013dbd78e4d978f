# -*- coding: utf-8 -*-
"""
Rule Evaluator - resolves a dynamic routeNext against the data model.

A dynamic routeNext is an ordered list of rule groups::

    [
        {"routeNext": "r-married", "condition": "and",
         "rules": [{"field": "maritalStatus", "operator": "=", "value": "married"}]},
        {"routeNext": "r-other", "default": True},
    ]

Groups are tried in order and the first satisfied group wins. Rules are
either leaf comparisons or nested ``{"condition", "rules"}`` groups.
"""

import operator as op
from typing import Any, Callable, Dict, List, Optional

from services.exceptions import NoMatchingRuleError
from services.validation.validation_strategy import is_empty_value
from services.wizard.data_model import path_problem
from utils.logger import get_logger

logger = get_logger(__name__)

CONDITION_AND = "and"
CONDITION_OR = "or"


def _compare(func: Callable[[Any, Any], bool]) -> Callable[[Any, Any], bool]:
    """Wrap an ordering comparison so incomparable values never match."""
    def compare(left: Any, right: Any) -> bool:
        if left is None or right is None:
            return False
        try:
            return bool(func(left, right))
        except TypeError:
            return False
    return compare


def _contains(left: Any, right: Any) -> bool:
    if isinstance(left, (str, list, tuple, set, dict)):
        try:
            return right in left
        except TypeError:
            return False
    return False


def _member(left: Any, right: Any) -> bool:
    if isinstance(right, (list, tuple, set)):
        return left in right
    return False


OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "=": lambda left, right: left == right,
    "!=": lambda left, right: left != right,
    "<": _compare(op.lt),
    "<=": _compare(op.le),
    ">": _compare(op.gt),
    ">=": _compare(op.ge),
    "in": _member,
    "not in": lambda left, right: not _member(left, right),
    "contains": _contains,
    "not contains": lambda left, right: not _contains(left, right),
    "is empty": lambda left, right: is_empty_value(left),
    "is not empty": lambda left, right: not is_empty_value(left),
    "is null": lambda left, right: left is None,
    "is not null": lambda left, right: left is not None,
}


class RuleEvaluator:
    """
    Stateless evaluator for rule-group lists.

    Never caches: the data model may change between two visits of the
    same route, so every call reads it afresh.
    """

    def evaluate(
        self,
        rule_groups: List[dict],
        data_model,
        index: Optional[int] = None,
        route_id: str = "",
    ) -> str:
        """
        Select the target route id.

        Args:
            rule_groups: Ordered rule groups of a dynamic route
            data_model: Object with get(path, index)
            index: Current array index for ``[]`` paths
            route_id: Route being resolved (for errors and logs)

        Returns:
            routeNext of the first matching group

        Raises:
            NoMatchingRuleError: no group matched and there is no default
        """
        for position, group in enumerate(rule_groups):
            if group.get("default"):
                logger.debug(f"Route {route_id}: default group {position} → {group['routeNext']}")
                return group["routeNext"]
            if self.matches(group, data_model, index):
                logger.debug(f"Route {route_id}: group {position} matched → {group['routeNext']}")
                return group["routeNext"]

        logger.warning(f"Route {route_id}: no rule group matched")
        raise NoMatchingRuleError(route_id)

    def matches(self, group: dict, data_model, index: Optional[int] = None) -> bool:
        """Check whether a (possibly nested) rule group is satisfied."""
        rules = group.get("rules") or []
        if not rules:
            return False

        results = (self._evaluate_rule(rule, data_model, index) for rule in rules)
        if group.get("condition", CONDITION_AND).lower() == CONDITION_OR:
            return any(results)
        return all(results)

    def _evaluate_rule(self, rule: dict, data_model, index: Optional[int]) -> bool:
        if "rules" in rule:
            return self.matches(rule, data_model, index)

        compare = OPERATORS[rule.get("operator", "=")]
        left = data_model.get(rule["field"], index)
        return compare(left, rule.get("value"))


def validate_rule_groups(rule_groups: Any, route_ids, route_label: str,
                         array_field: Optional[str] = None) -> List[str]:
    """
    Structural check of a dynamic routeNext, used by the builder.

    Args:
        rule_groups: The authored routeNext list
        route_ids: Route ids a group may target
        route_label: "section/route" prefix for messages
        array_field: Collection the section repeats over; enables [] paths

    Returns:
        Violation messages (empty if well-formed)
    """
    errors: List[str] = []
    if not rule_groups:
        return [f"{route_label}: dynamic routeNext has no rule groups"]

    default_positions = []
    for position, group in enumerate(rule_groups):
        where = f"{route_label}: rule group {position}"
        if not isinstance(group, dict):
            errors.append(f"{where} is not a mapping")
            continue

        target = group.get("routeNext")
        if not target:
            errors.append(f"{where} has no routeNext")
        elif target not in route_ids:
            errors.append(f"{where} targets unknown route '{target}'")

        if group.get("default"):
            default_positions.append(position)
        else:
            errors.extend(_validate_rules(group, where, array_field))

    if len(default_positions) > 1:
        errors.append(f"{route_label}: more than one default rule group")
    if default_positions and default_positions[-1] != len(rule_groups) - 1:
        errors.append(f"{route_label}: default rule group must be last")

    return errors


def _validate_rules(group: dict, where: str, array_field: Optional[str]) -> List[str]:
    errors: List[str] = []
    condition = str(group.get("condition", CONDITION_AND)).lower()
    if condition not in (CONDITION_AND, CONDITION_OR):
        errors.append(f"{where}: unknown condition '{group.get('condition')}'")

    rules = group.get("rules")
    if not isinstance(rules, list) or not rules:
        errors.append(f"{where}: needs a non-empty 'rules' list")
        return errors

    for number, rule in enumerate(rules):
        if not isinstance(rule, dict):
            errors.append(f"{where} rule {number} is not a mapping")
        elif "rules" in rule:
            errors.extend(_validate_rules(rule, f"{where} rule {number}", array_field))
        else:
            if not rule.get("field"):
                errors.append(f"{where} rule {number} has no field")
            else:
                problem = path_problem(rule["field"], array_field)
                if problem:
                    errors.append(f"{where} rule {number}: {problem}")
            if rule.get("operator", "=") not in OPERATORS:
                errors.append(f"{where} rule {number} uses unknown operator '{rule.get('operator')}'")
    return errors
