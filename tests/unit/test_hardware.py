"""
Unit tests for the simulated hardware: sensor feed, display and haptic motor.
"""

import asyncio
import unittest
from unittest.mock import AsyncMock

from postureup.core.config import DisplayConfig, HapticConfig, SensorConfig
from postureup.core.errors import ActuatorWriteFailure, PermissionDenied, SensorUnavailable
from postureup.hardware.display import BrightnessActuator, SimulatedDisplay
from postureup.hardware.haptic import HapticActuator, SimulatedHaptic
from postureup.hardware.sensor import (
    ON_DESK, SCENARIOS, UPRIGHT, SimulatedSensorFeed, scenario_script
)


class TestSimulatedSensorFeed(unittest.IsolatedAsyncioTestCase):
    """Test cases for the scripted sensor feed."""

    async def asyncSetUp(self):
        self.config = SensorConfig(sample_interval=0.01)

    async def test_subscribe_requires_initialization(self):
        feed = SimulatedSensorFeed(self.config)
        with self.assertRaises(SensorUnavailable):
            await feed.subscribe(0.01, AsyncMock())

    async def test_replays_script_then_repeats_last(self):
        feed = SimulatedSensorFeed(self.config, script=[(0, 1, 0), (0, 0, 1)])
        await feed.initialize()
        received = []
        enough = asyncio.Event()

        async def handler(reading):
            received.append(reading)
            if len(received) == 4:
                enough.set()

        subscription = await feed.subscribe(0.001, handler)
        await asyncio.wait_for(enough.wait(), timeout=1.0)
        await subscription.unsubscribe()
        self.assertEqual(received[:4], [(0, 1, 0), (0, 0, 1), (0, 0, 1), (0, 0, 1)])

    async def test_unsubscribe_stops_delivery(self):
        feed = SimulatedSensorFeed(self.config)
        await feed.initialize()
        handler = AsyncMock()
        subscription = await feed.subscribe(0.001, handler)
        await asyncio.sleep(0.01)
        await subscription.unsubscribe()
        self.assertFalse(subscription.active)

        count = handler.await_count
        await asyncio.sleep(0.01)
        self.assertEqual(handler.await_count, count)

        # Second unsubscribe is a no-op
        await subscription.unsubscribe()

    async def test_handler_errors_do_not_end_feed(self):
        feed = SimulatedSensorFeed(self.config, script=[(0, 1, 0)])
        await feed.initialize()
        handler = AsyncMock(side_effect=ValueError("bad"))
        subscription = await feed.subscribe(0.001, handler)
        await asyncio.sleep(0.02)
        self.assertTrue(subscription.active)
        self.assertGreater(handler.await_count, 1)
        await subscription.unsubscribe()

    async def test_unsubscribe_from_inside_handler(self):
        """The feed ends after the current reading instead of cancelling its own handler."""
        feed = SimulatedSensorFeed(self.config, script=[(0, 1, 0)])
        await feed.initialize()
        subscriptions = []
        handled = []

        async def handler(reading):
            await subscriptions[0].unsubscribe()
            handled.append(reading)

        subscriptions.append(await feed.subscribe(0.001, handler))
        await asyncio.wait_for(subscriptions[0].task, timeout=1.0)
        self.assertEqual(handled, [(0, 1, 0)])
        self.assertFalse(subscriptions[0].active)


class TestScenarios(unittest.TestCase):

    def test_script_length_follows_interval(self):
        script = scenario_script("slouch", 0.5)
        total = sum(seconds for _, seconds, _ in SCENARIOS["slouch"])
        self.assertEqual(len(script), int(total / 0.5))

    def test_resting_segments_are_exact(self):
        script = scenario_script("desk", 0.5)
        held = int(SCENARIOS["desk"][0][1] / 0.5)
        resting = script[held:held + int(SCENARIOS["desk"][1][1] / 0.5)]
        self.assertTrue(all(reading == ON_DESK for reading in resting))

    def test_held_segments_have_tremor(self):
        script = scenario_script("desk", 0.5)
        self.assertNotEqual(script[0], UPRIGHT)

    def test_unknown_scenario(self):
        with self.assertRaises(KeyError):
            scenario_script("juggling", 0.5)


class TestSimulatedActuators(unittest.IsolatedAsyncioTestCase):

    async def test_display_brightness(self):
        display = BrightnessActuator.create(DisplayConfig())
        self.assertIsInstance(display, SimulatedDisplay)
        self.assertEqual(await display.get_brightness(), 0.8)
        await display.set_brightness(1.7)
        self.assertEqual(await display.get_brightness(), 1.0)

    async def test_display_permission(self):
        display = SimulatedDisplay(DisplayConfig())
        await display.request_permission()
        display.permission_granted = False
        with self.assertRaises(PermissionDenied):
            await display.request_permission()

        unrestricted = SimulatedDisplay(DisplayConfig(require_permission=False))
        unrestricted.permission_granted = False
        await unrestricted.request_permission()

    async def test_display_write_failure(self):
        display = SimulatedDisplay(DisplayConfig())
        display.fail_writes = True
        with self.assertRaises(ActuatorWriteFailure) as ctx:
            await display.set_brightness(0.5)
        self.assertEqual(ctx.exception.actuator, "display")
        self.assertEqual(await display.get_brightness(), 0.8)

    async def test_haptic_start_stop(self):
        haptic = HapticActuator.create(HapticConfig())
        self.assertIsInstance(haptic, SimulatedHaptic)
        await haptic.start(haptic.default_pattern)
        self.assertTrue(haptic.active)
        self.assertEqual(haptic.pattern, [0, 400, 200, 400])
        await haptic.stop()
        self.assertFalse(haptic.active)

    async def test_lifecycle_and_health(self):
        haptic = SimulatedHaptic(HapticConfig())
        self.assertEqual((await haptic.check_health())['status'], "offline")
        await haptic.initialize()
        self.assertTrue(haptic.is_initialized())
        self.assertEqual((await haptic.check_health())['status'], "ok")
        await haptic.start([100])
        await haptic.shutdown()
        self.assertFalse(haptic.is_initialized())
        self.assertFalse(haptic.active)


if __name__ == '__main__':
    unittest.main()
