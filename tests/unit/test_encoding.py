from __future__ import annotations

import pytest

import schedule_import.parsing.encoding as enc
from schedule_import.parsing.encoding import detect_and_decode

RUSSIAN_SCHEDULE = (
    "Предмет;День недели;Время начала;Время окончания;Кабинет;Преподаватель\n"
    "Математика;Понедельник;08:30;09:15;201;Иванова Мария Петровна\n"
    "Русский язык;Понедельник;09:25;10:10;105;Смирнова Ольга Ивановна\n"
    "Литература;Вторник;10:20;11:05;105;Смирнова Ольга Ивановна\n"
    "Физика;Среда;11:15;12:00;310;Кузнецов Алексей Сергеевич\n"
    "История;Четверг;12:10;12:55;214;Попова Елена Викторовна\n"
    "География;Пятница;13:05;13:50;118;Соколов Дмитрий Андреевич\n"
)


def _fake_detect(result):
    def fake(content):
        return result
    return fake


def test_empty_content_uses_fallback():
    decoded = detect_and_decode(b"")
    assert decoded.text == ""
    assert decoded.fallback_used is True
    assert decoded.encoding == "utf-8"


@pytest.mark.parametrize("codec", ["cp1251", "koi8-r"])
def test_legacy_cyrillic_code_pages(codec):
    decoded = detect_and_decode(RUSSIAN_SCHEDULE.encode(codec))
    assert decoded.text == RUSSIAN_SCHEDULE
    assert decoded.fallback_used is False
    assert "\ufffd" not in decoded.text


def test_low_confidence_guess_is_still_used(monkeypatch):
    raw = "Предмет;День\nМатематика;Понедельник\n".encode("cp1251")
    monkeypatch.setattr(enc.chardet, "detect", _fake_detect({"encoding": "Windows-1251", "confidence": 0.24}))
    decoded = detect_and_decode(raw)
    assert decoded.text.startswith("Предмет;День")
    assert decoded.encoding == "Windows-1251"
    assert decoded.confidence == pytest.approx(0.24)
    assert decoded.fallback_used is False


def test_valid_utf8_skips_chardet(monkeypatch):
    def fail(content):
        raise AssertionError("chardet should not be consulted")

    monkeypatch.setattr(enc.chardet, "detect", fail)
    decoded = detect_and_decode("Subject,Day\nМатематика,пн\n".encode("utf-8"))
    assert decoded.encoding == "utf-8"
    assert "Математика" in decoded.text
    assert decoded.fallback_used is False


def test_utf8_bom_is_stripped():
    decoded = detect_and_decode("\ufeffПредмет,День\n".encode("utf-8"))
    assert decoded.text == "Предмет,День\n"
    assert decoded.encoding == "UTF-8-SIG"


def test_configured_threshold_rejects_weak_guess(monkeypatch):
    raw = "Предмет;День\n".encode("cp1251")
    monkeypatch.setattr(enc.chardet, "detect", _fake_detect({"encoding": "Windows-1251", "confidence": 0.2}))
    decoded = detect_and_decode(raw, fallback="cp1251", min_confidence=0.5)
    assert decoded.fallback_used is True
    assert decoded.text == "Предмет;День\n"


def test_no_guess_falls_back(monkeypatch):
    monkeypatch.setattr(enc.chardet, "detect", _fake_detect({"encoding": None, "confidence": 0.0}))
    decoded = detect_and_decode(b"Subject,Day\n\xff\n")
    assert decoded.fallback_used is True
    assert decoded.text == "Subject,Day\n\ufffd\n"


def test_unknown_codec_falls_back(monkeypatch):
    monkeypatch.setattr(enc.chardet, "detect", _fake_detect({"encoding": "x-no-such-codec", "confidence": 0.9}))
    decoded = detect_and_decode(b"Subject,Day\n\xff\n")
    assert decoded.fallback_used is True


def test_undecodable_content_falls_back_with_replacement(monkeypatch):
    raw = b"Subject,Day\n\xff\xfe\xfa,1\n"
    monkeypatch.setattr(enc.chardet, "detect", _fake_detect({"encoding": "ascii", "confidence": 1.0}))
    decoded = detect_and_decode(raw)
    assert decoded.fallback_used is True
    assert decoded.text.startswith("Subject,Day\n")
    assert "\ufffd" in decoded.text


def test_ascii_is_utf8():
    decoded = detect_and_decode(b"Subject,Day,Start Time,End Time\nMath,Monday,09:00,10:30\n")
    assert decoded.text.startswith("Subject,Day")
    assert decoded.encoding == "utf-8"
