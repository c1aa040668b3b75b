"""Tests for CropInteractionController."""

from unittest.mock import Mock

import pytest

from thermo_overlay.crop.controller import CropInteractionController
from thermo_overlay.crop.engine import ContainerBox, GestureAction
from thermo_overlay.crop.geometry import NormalisedRect


@pytest.fixture
def callbacks():
    return {"on_crop_changed": Mock(), "on_capture": Mock(), "on_release": Mock()}


@pytest.fixture
def controller(callbacks):
    # Image drawn at (50, 20) with a 1000x500 box.
    box = ContainerBox(50.0, 20.0, 1000.0, 500.0)
    return CropInteractionController(container_provider=lambda: box, **callbacks)


def test_starts_with_full_frame(controller):
    assert controller.crop_rect() == NormalisedRect.full()
    assert not controller.is_dragging()
    assert controller.view_rect() == (50.0, 20.0, 1050.0, 520.0)


def test_press_on_corner_resizes(controller, callbacks):
    assert controller.press((50, 20))
    assert controller.active_action() is GestureAction.RESIZE_NW
    callbacks["on_capture"].assert_called_once()

    controller.move((150, 70))
    rect = controller.crop_rect()
    assert rect.as_tuple() == pytest.approx((10.0, 10.0, 90.0, 90.0))
    callbacks["on_crop_changed"].assert_called_with(rect)

    controller.release()
    assert not controller.is_dragging()
    callbacks["on_release"].assert_called_once()
    assert controller.crop_rect() == rect


def test_press_inside_moves(controller):
    controller.set_crop_rect(NormalisedRect(0, 0, 50, 50))
    assert controller.press((300, 150))
    assert controller.active_action() is GestureAction.MOVE
    controller.move((400, 200))
    assert controller.crop_rect().as_tuple() == pytest.approx((10.0, 10.0, 50.0, 50.0))


def test_press_outside_image_starts_nothing(controller, callbacks):
    assert not controller.press((1200, 600))
    assert not controller.is_dragging()
    callbacks["on_capture"].assert_not_called()


def test_moves_without_press_are_ignored(controller, callbacks):
    controller.move((500, 500))
    controller.release()
    assert controller.crop_rect() == NormalisedRect.full()
    callbacks["on_crop_changed"].assert_not_called()
    callbacks["on_release"].assert_not_called()


def test_malformed_action_keeps_last_rect(controller, callbacks):
    controller.set_crop_rect(NormalisedRect(10, 10, 50, 50))
    callbacks["on_crop_changed"].reset_mock()

    assert not controller.press((100, 100), action="rotate")

    assert controller.crop_rect() == NormalisedRect(10, 10, 50, 50)
    assert not controller.is_dragging()
    callbacks["on_crop_changed"].assert_not_called()


def test_second_press_during_drag_is_ignored(controller):
    assert controller.press((50, 20))
    assert not controller.press((500, 250), action="move")
    assert controller.active_action() is GestureAction.RESIZE_NW


def test_set_crop_rect_is_ignored_while_dragging(controller):
    controller.press((50, 20))
    controller.set_crop_rect(NormalisedRect(20, 20, 20, 20))
    assert controller.crop_rect() == NormalisedRect.full()


def test_set_crop_rect_clamps(controller):
    controller.set_crop_rect(NormalisedRect(95, 95, 50, 2))
    assert controller.crop_rect().is_valid()


def test_reset_cancels_gesture_and_restores_full_frame(controller, callbacks):
    controller.press((50, 20))
    controller.move((150, 70))
    controller.reset()
    assert not controller.is_dragging()
    assert controller.crop_rect() == NormalisedRect.full()
    callbacks["on_release"].assert_called_once()
