"""Tests for Settings validation."""

import unittest

from pydantic import ValidationError

from app.core.config import Settings


def make_settings(**overrides) -> Settings:
    values = {"DATABASE_URL": "sqlite://"}
    values.update(overrides)
    return Settings(_env_file=None, **values)


class TestSettings(unittest.TestCase):
    def test_accepts_postgres_and_sqlite(self) -> None:
        for url in ("postgresql+psycopg2://u:p@db/credits", "sqlite:///./credits.db"):
            with self.subTest(url=url):
                self.assertEqual(make_settings(DATABASE_URL=url).DATABASE_URL, url)

    def test_rejects_other_databases(self) -> None:
        for url in ("mysql://u:p@db/credits", "   "):
            with self.subTest(url=url):
                with self.assertRaises(ValidationError):
                    make_settings(DATABASE_URL=url)

    def test_jwt_expire_minutes_range(self) -> None:
        self.assertEqual(make_settings(JWT_EXPIRE_MINUTES=60).JWT_EXPIRE_MINUTES, 60)
        for minutes in (0, 10081):
            with self.subTest(minutes=minutes):
                with self.assertRaises(ValidationError):
                    make_settings(JWT_EXPIRE_MINUTES=minutes)

    def test_jwt_algorithm_must_be_hmac(self) -> None:
        self.assertEqual(make_settings(JWT_ALGORITHM="HS512").JWT_ALGORITHM, "HS512")
        with self.assertRaises(ValidationError):
            make_settings(JWT_ALGORITHM="RS256")

    def test_blank_secrets_become_none(self) -> None:
        s = make_settings(JWT_SECRET="  ", EXTERNAL_AUTH_KEY="", ADMIN_PASSWORD=" ")
        self.assertIsNone(s.JWT_SECRET)
        self.assertIsNone(s.EXTERNAL_AUTH_KEY)
        self.assertIsNone(s.ADMIN_PASSWORD)
        self.assertEqual(make_settings(JWT_SECRET="s3cret").JWT_SECRET.get_secret_value(), "s3cret")

    def test_log_level_normalized(self) -> None:
        self.assertEqual(make_settings(LOG_LEVEL="debug").LOG_LEVEL, "DEBUG")
        with self.assertRaises(ValidationError):
            make_settings(LOG_LEVEL="chatty")

    def test_page_limits(self) -> None:
        with self.assertRaises(ValidationError):
            make_settings(MAX_PAGE_LIMIT=0)


if __name__ == "__main__":
    unittest.main()
