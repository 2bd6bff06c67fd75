"""Evaluator values, determinism and registry."""

import numpy as np
import pytest

from hmclient.core.types import BoundParams, EvalResult
from hmclient.evaluators import (
    ChakongHaimes,
    Evaluator,
    available_evaluators,
    get_evaluator,
    register_evaluator,
)


def bound(x0, x1):
    return BoundParams([("x0", x0), ("x1", x1)])


@pytest.mark.parametrize(
    "x0,x1,f1,f2,feasible",
    [
        (3, 4, 12, 18, False),
        (0, 0, 7, -1, False),
        (0, 5, 22, -16, True),
        (-5, 10, 132, -126, True),
        (20, 20, 687, -181, False),
    ],
)
def test_chakong_haimes_values(x0, x1, f1, f2, feasible):
    result = ChakongHaimes()(bound(x0, x1))

    np.testing.assert_array_equal(result.F, [f1, f2])
    assert result.feasible is feasible


def test_chakong_haimes_idempotent():
    evaluator = ChakongHaimes()
    params = bound(3, 4)

    result1 = evaluator(params)
    result2 = evaluator(params)

    np.testing.assert_array_equal(result1.F, result2.F)
    assert result1.feasible == result2.feasible
    assert result1.diag == result2.diag


def test_chakong_haimes_custom_keys():
    evaluator = ChakongHaimes(x0_key="a", x1_key="b")
    result = evaluator(BoundParams([("b", 4), ("a", 3)]))

    np.testing.assert_array_equal(result.F, [12, 18])


def test_registry():
    assert "chakong_haimes" in available_evaluators()
    assert isinstance(get_evaluator("chakong_haimes"), ChakongHaimes)
    assert isinstance(get_evaluator("chakong_haimes"), Evaluator)

    with pytest.raises(ValueError, match="Unknown evaluator"):
        get_evaluator("does_not_exist")


def test_register_evaluator():
    def constant():
        return lambda params: EvalResult(F=[1.0, 2.0])

    register_evaluator("test_constant", constant)
    result = get_evaluator("test_constant")(bound(0, 0))
    np.testing.assert_array_equal(result.F, [1.0, 2.0])

    with pytest.raises(ValueError, match="already registered"):
        register_evaluator("test_constant", constant)


def test_eval_result_coerces_float64():
    result = EvalResult(F=[1, 2], feasible=0)
    assert result.F.dtype == np.float64
    assert result.n_obj == 2
    assert result.feasible is False
