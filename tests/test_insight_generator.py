import unittest

from app.cache import TTLCache
from app.config import Settings
from app.domain import (
    ENERGY_FALLBACK,
    GENERIC_INSIGHT,
    INVALID_INPUT_INSIGHT,
    PRODUCTION_FALLBACK,
    WEATHER_FALLBACK,
    EnergyMetric,
    EnergyTrend,
    InsightInput,
    ProductionMetric,
    WeatherMetric,
)
from app.insight_generator import (
    ENERGY_UP_INSIGHT,
    EXTREME_HEAT_INSIGHT,
    PRODUCTION_DOWN_INSIGHT,
    PRODUCTION_UP_INSIGHT,
    WEATHER_ALERT_INSIGHT,
    InsightGenerator,
    rule_based_insight,
)
from fakes import LIVE_ENERGY, LIVE_PRODUCTION, LIVE_WEATHER, MODEL_DOWN, FakeClock, FakeModelClient, insight_json


def _metrics(production=LIVE_PRODUCTION, energy=LIVE_ENERGY, weather=LIVE_WEATHER):
    return InsightInput(production=production, energy=energy, weather=weather)


class TestRuleBasedInsight(unittest.TestCase):
    def test_rules_in_priority_order(self):
        hot_and_pricey = _metrics(
            energy=EnergyMetric(cents_per_kwh=15.0, trend=EnergyTrend.UP),
            weather=WeatherMetric(temp=104, alert="Extreme heat warning"),
        )
        self.assertEqual(rule_based_insight(hot_and_pricey), EXTREME_HEAT_INSIGHT)

        pricey = _metrics(energy=EnergyMetric(cents_per_kwh=15.0, trend=EnergyTrend.UP),
                          weather=WeatherMetric(temp=80, alert="Wind Advisory"))
        self.assertEqual(rule_based_insight(pricey), ENERGY_UP_INSIGHT)

        windy = _metrics(weather=WeatherMetric(temp=80, alert="Wind Advisory"),
                         production=ProductionMetric(index=99.0, trend="↓ 1.2% MoM"))
        self.assertEqual(rule_based_insight(windy), WEATHER_ALERT_INSIGHT)

        declining = _metrics(production=ProductionMetric(index=99.0, trend="↓ 1.2% MoM"))
        self.assertEqual(rule_based_insight(declining), PRODUCTION_DOWN_INSIGHT)

        self.assertEqual(rule_based_insight(_metrics()), PRODUCTION_UP_INSIGHT)

        flat = _metrics(production=ProductionMetric(index=99.0, trend="→ 0.0% MoM"))
        self.assertEqual(rule_based_insight(flat), GENERIC_INSIGHT)

    def test_all_fallback_values_yield_generic_insight(self):
        metrics = _metrics(production=PRODUCTION_FALLBACK, energy=ENERGY_FALLBACK, weather=WEATHER_FALLBACK)
        self.assertEqual(rule_based_insight(metrics), GENERIC_INSIGHT)


class TestInsightGenerator(unittest.TestCase):
    def setUp(self):
        self.clock = FakeClock()
        self.settings = Settings(claude_api_key="sk-test", insight_ttl_seconds=1800)

    def _generator(self, *replies):
        client = FakeModelClient(*replies)
        cache = TTLCache(default_ttl_seconds=1800, clock=self.clock.monotonic, name="insights")
        return InsightGenerator(client=client, cache=cache, settings=self.settings, now=self.clock.now), client

    def _generate(self, generator, force=False, **overrides):
        m = _metrics(**overrides)
        return generator.generate(m.production, m.energy, m.weather, force=force)

    def test_same_data_is_served_from_cache(self):
        generator, client = self._generator(insight_json("First"))

        first = self._generate(generator)
        self.clock.advance(60)
        second = self._generate(generator)

        self.assertEqual(len(client.calls), 1)
        self.assertEqual(first.source, "ai")
        self.assertEqual(second.source, "cache")
        self.assertEqual(second.data, first.data)
        self.assertEqual(second.generated_at, first.generated_at)

    def test_force_regenerates(self):
        generator, client = self._generator(insight_json("First"), insight_json("Second"))
        self._generate(generator)
        self.clock.advance(5)

        forced = self._generate(generator, force=True)

        self.assertEqual(len(client.calls), 2)
        self.assertEqual(forced.data.summary, "Second")
        self.assertEqual(forced.generated_at, self.clock.now())

    def test_expired_insight_regenerates(self):
        generator, client = self._generator(insight_json("First"), insight_json("Second"))
        self._generate(generator)
        self.clock.advance(1800)

        again = self._generate(generator)

        self.assertEqual(len(client.calls), 2)
        self.assertEqual(again.data.summary, "Second")

    def test_changed_data_regenerates(self):
        generator, client = self._generator(insight_json("First"), insight_json("Second"))
        self._generate(generator)
        self._generate(generator, weather=WeatherMetric(temp=95, alert="none"))
        self.assertEqual(len(client.calls), 2)

    def test_failure_serves_stale_insight_for_same_data(self):
        generator, client = self._generator(insight_json("First"), MODEL_DOWN)
        first = self._generate(generator)
        self.clock.advance(1801)

        stale = self._generate(generator)

        self.assertEqual(len(client.calls), 2)
        self.assertEqual(stale.source, "stale_cache")
        self.assertEqual(stale.data, first.data)
        self.assertEqual(stale.generated_at, first.generated_at)

    def test_failure_serves_latest_insight_for_other_data(self):
        generator, _ = self._generator(insight_json("First"), MODEL_DOWN)
        first = self._generate(generator)

        other = self._generate(generator, weather=WeatherMetric(temp=95, alert="none"))

        self.assertEqual(other.source, "latest")
        self.assertEqual(other.data, first.data)

    def test_failure_without_history_uses_rules(self):
        generator, _ = self._generator(MODEL_DOWN)

        result = self._generate(generator, weather=WeatherMetric(temp=104, alert="Extreme heat warning"),
                                energy=EnergyMetric(cents_per_kwh=15.0, trend=EnergyTrend.UP))

        self.assertEqual(result.source, "rules")
        self.assertEqual(result.data, EXTREME_HEAT_INSIGHT)
        self.assertIsNone(result.generated_at)

    def test_unparseable_reply_falls_back(self):
        generator, _ = self._generator("Production looks fine, no JSON here.")
        result = self._generate(generator)
        self.assertEqual(result.source, "rules")
        self.assertEqual(result.data, PRODUCTION_UP_INSIGHT)
        self.assertEqual(len(generator.cache), 0)

    def test_unexpected_client_error_falls_back(self):
        generator, _ = self._generator(KeyError("content"))
        self.assertEqual(self._generate(generator).source, "rules")

    def test_missing_key_falls_back_to_rules(self):
        settings = Settings(claude_api_key=None)
        generator = InsightGenerator(settings=settings, now=self.clock.now,
                                     cache=TTLCache(default_ttl_seconds=1800, clock=self.clock.monotonic))
        result = self._generate(generator)
        self.assertEqual(result.source, "rules")

    def test_invalid_input(self):
        generator, client = self._generator(insight_json())
        result = generator.generate(None, LIVE_ENERGY, {"temp": "hot"})
        self.assertEqual(result.data, INVALID_INPUT_INSIGHT)
        self.assertEqual(result.source, "invalid_input")
        self.assertIsNone(result.generated_at)
        self.assertEqual(client.calls, [])

    def test_stats_and_clear(self):
        generator, _ = self._generator(insight_json())
        self._generate(generator)
        self.assertEqual(generator.stats(), {"total_cached": 1, "has_latest": True, "ttl_seconds": 1800})
        generator.clear()
        self.assertEqual(generator.stats(), {"total_cached": 0, "has_latest": False, "ttl_seconds": 1800})


if __name__ == "__main__":
    unittest.main()
