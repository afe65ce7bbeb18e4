from riskplan.services.recompute import move_threshold_pct, should_recompute


def test_bar_close_always_recomputes():
    assert should_recompute(100.0, 100.0, bar_closed=True)


def test_regular_threshold():
    assert move_threshold_pct(False) == 0.5
    assert not should_recompute(100.0, 100.4)
    assert should_recompute(100.0, 100.6)
    assert should_recompute(100.0, 99.4)


def test_same_day_expiry_is_more_sensitive():
    assert move_threshold_pct(True) == 0.2
    assert not should_recompute(100.0, 100.3)
    assert should_recompute(100.0, 100.3, same_day_expiry=True)


def test_missing_previous_price_recomputes():
    assert should_recompute(None, 100.0)
    assert should_recompute(0.0, 100.0)
