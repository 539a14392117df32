import unittest

from app.data_sources import openweather_client
from app.errors import PayloadShapeError
from fakes import DummyResp, FakeSession


def _make_weather_payload(temp=88.4, condition=None, alerts=None):
    payload = {
        "coord": {"lon": -106.485, "lat": 31.7619},
        "weather": [condition or {"id": 800, "main": "Clear", "description": "clear sky", "icon": "01d"}],
        "main": {"temp": temp, "feels_like": temp, "temp_min": temp - 2, "temp_max": temp + 2,
                 "pressure": 1012, "humidity": 12},
        "name": "El Paso",
        "cod": 200,
    }
    if alerts is not None:
        payload["alerts"] = alerts
    return payload


class TestOpenWeatherClient(unittest.TestCase):
    def setUp(self):
        self._orig_session = openweather_client.session

    def tearDown(self):
        openweather_client.session = self._orig_session

    def test_fetch_current_weather(self):
        fake = FakeSession(DummyResp(_make_weather_payload()))
        openweather_client.session = fake

        current = openweather_client.fetch_current_weather("k3y", 31.7619, -106.485)

        self.assertEqual(current.temp, 88)
        self.assertEqual(current.alert, "none")
        self.assertEqual(fake.calls[0]["params"]["units"], "imperial")
        self.assertEqual(fake.calls[0]["params"]["appid"], "k3y")

    def test_severe_condition_alert(self):
        thunder = {"id": 211, "main": "Thunderstorm", "description": "thunderstorm"}
        current = openweather_client.parse_weather_payload(_make_weather_payload(temp=80, condition=thunder))
        self.assertEqual(current.alert, "Thunderstorm: thunderstorm")

    def test_temperature_thresholds(self):
        hot = openweather_client.parse_weather_payload(_make_weather_payload(temp=99.5))
        self.assertEqual(hot.temp, 100)
        self.assertEqual(hot.alert, "Extreme heat warning")

        dust = {"id": 761, "main": "Dust", "description": "dust"}
        cold = openweather_client.parse_weather_payload(_make_weather_payload(temp=31.0, condition=dust))
        self.assertEqual(cold.alert, "Freezing temperature alert")

    def test_upstream_alert_wins(self):
        alerts = [{"sender_name": "NWS", "event": "Wind Advisory", "description": "gusts to 50 mph"}]
        current = openweather_client.parse_weather_payload(_make_weather_payload(temp=104, alerts=alerts))
        self.assertEqual(current.alert, "Wind Advisory")

        current = openweather_client.parse_weather_payload(_make_weather_payload(alerts=[{}]))
        self.assertEqual(current.alert, "Weather alert active")

    def test_zero_degrees_is_a_valid_reading(self):
        current = openweather_client.parse_weather_payload(_make_weather_payload(temp=0))
        self.assertEqual(current.temp, 0)

    def test_invalid_payloads(self):
        for bad in ({}, {"main": {}}, {"main": {"temp": "hot"}}, ["not", "a", "dict"]):
            with self.subTest(bad=bad):
                with self.assertRaises(PayloadShapeError):
                    openweather_client.parse_weather_payload(bad)


if __name__ == "__main__":
    unittest.main()
