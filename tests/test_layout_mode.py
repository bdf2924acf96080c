"""Tests for device heuristics and the layout mode selector."""

import pytest

from backoffice.core.layout_mode import (RESIZE, STORAGE, DeviceSignals,
                                         HostEnvironment, LayoutModeSelector,
                                         detect_layout_mode,
                                         get_force_mobile_mode,
                                         is_desktop_device, is_mobile_device,
                                         is_tablet_device,
                                         set_force_mobile_mode,
                                         should_use_mobile_layout)
from backoffice.services.preferences import PreferenceStore

DESKTOP_UA = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 Chrome/120.0 Safari/537.36"
IPHONE_UA = "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 Version/17.0 Safari/604.1"
IPAD_UA = "Mozilla/5.0 (iPad; CPU OS 17_0 like Mac OS X) AppleWebKit/605.1.15 Version/17.0 Safari/604.1"


# ── Device heuristics ───────────────────────────────────────────────
@pytest.mark.parametrize(
    "signals,expected",
    [
        (DeviceSignals(IPHONE_UA, 1280), True),
        (DeviceSignals("SomeBrowser Mobile/1.0", 1280), True),
        (DeviceSignals(DESKTOP_UA, 400), True),
        (DeviceSignals(DESKTOP_UA, 768), True),
        (DeviceSignals(DESKTOP_UA, 769), False),
        (DeviceSignals(DESKTOP_UA, None), False),
        (DeviceSignals(IPAD_UA, 900), False),
    ],
)
def test_is_mobile_device(signals, expected):
    assert is_mobile_device(signals) is expected


def test_tablet_and_desktop_classification():
    ipad = DeviceSignals(IPAD_UA, 900)
    assert is_tablet_device(ipad)
    assert not is_desktop_device(ipad)
    assert not is_tablet_device(DeviceSignals(IPAD_UA, 1366))
    assert is_desktop_device(DeviceSignals(DESKTOP_UA, 1440))


# ── Forced flag & precedence ────────────────────────────────────────
def test_force_flag_set_and_clear():
    store = PreferenceStore()
    assert get_force_mobile_mode(store) is False
    set_force_mobile_mode(store, True)
    assert store.get("forceMobileMode") == "true"
    assert get_force_mobile_mode(store) is True
    set_force_mobile_mode(store, False)
    assert store.get("forceMobileMode") is None


def test_only_literal_true_forces_mobile():
    store = PreferenceStore({"forceMobileMode": "yes"})
    assert get_force_mobile_mode(store) is False


def test_override_can_only_force_mobile_on():
    desktop = DeviceSignals(DESKTOP_UA, 1440)
    phone = DeviceSignals(IPHONE_UA, 390)
    store = PreferenceStore()
    assert should_use_mobile_layout(store, desktop) is False
    assert should_use_mobile_layout(store, phone) is True
    set_force_mobile_mode(store, True)
    assert should_use_mobile_layout(store, desktop) is True
    set_force_mobile_mode(store, False)
    assert should_use_mobile_layout(store, phone) is True


def test_narrow_window_without_override():
    env = HostEnvironment(DeviceSignals(DESKTOP_UA, 400), PreferenceStore())
    mode = detect_layout_mode(env)
    assert mode.is_actual_mobile is True
    assert mode.is_mobile is True
    assert mode.should_use_mobile_layout is True


# ── Selector ────────────────────────────────────────────────────────
def test_check_is_idempotent():
    env = HostEnvironment(DeviceSignals(DESKTOP_UA, 1440), PreferenceStore())
    selector = LayoutModeSelector(env)
    assert selector.check() == selector.check()


def test_mount_runs_exactly_one_initial_check():
    calls = {"override": 0, "device": 0}

    def override():
        calls["override"] += 1
        return False

    def device():
        calls["device"] += 1
        return False

    env = HostEnvironment(DeviceSignals(DESKTOP_UA, 1440), PreferenceStore())
    selector = LayoutModeSelector(env, override, device)
    baseline = dict(calls)
    with selector.mount():
        assert calls["override"] == baseline["override"] + 1
        assert calls["device"] == baseline["device"] + 1


def test_resize_recomputes():
    env = HostEnvironment(DeviceSignals(DESKTOP_UA, 1440), PreferenceStore())
    selector = LayoutModeSelector(env)
    with selector.mount():
        assert selector.is_mobile is False
        env.resize(viewport_width=500)
        assert selector.is_mobile is True
        assert selector.is_actual_mobile is True
        env.resize(viewport_width=1200)
        assert selector.is_mobile is False


def test_forced_flag_from_another_client_updates_mounted_selector():
    shared = PreferenceStore()
    this_tab = HostEnvironment(DeviceSignals(DESKTOP_UA, 1440), shared)
    other_tab = HostEnvironment(DeviceSignals(DESKTOP_UA, 1920), shared)

    selector = LayoutModeSelector(this_tab)
    with selector.mount():
        assert selector.should_use_mobile_layout is False
        set_force_mobile_mode(other_tab.store, True)
        assert selector.is_mobile is True
        # The device itself is still a desktop
        assert selector.is_actual_mobile is False
        set_force_mobile_mode(other_tab.store, False)
        assert selector.is_mobile is False


def test_unmount_releases_every_listener():
    store = PreferenceStore()
    env = HostEnvironment(DeviceSignals(DESKTOP_UA, 1440), store)
    checks = []

    def override():
        checks.append("override")
        return get_force_mobile_mode(store)

    selector = LayoutModeSelector(env, override, env.compute_device_class)
    subscription = selector.mount()
    assert env.listener_count(RESIZE) == 1
    assert env.listener_count(STORAGE) == 1
    assert store.subscriber_count == 1

    subscription.close()
    assert subscription.closed
    assert env.listener_count(RESIZE) == 0
    assert env.listener_count(STORAGE) == 0
    assert store.subscriber_count == 0

    checks.clear()
    env.resize(viewport_width=300)
    set_force_mobile_mode(store, True)
    assert checks == []
    assert selector.is_mobile is False

    # closing twice is harmless
    subscription.close()


def test_unknown_event_rejected():
    env = HostEnvironment(DeviceSignals(), PreferenceStore())
    with pytest.raises(ValueError):
        env.add_listener("orientationchange", lambda: None)
    with pytest.raises(ValueError):
        env.listener_count("orientationchange")
