"""
Kalender-Arithmetik für die Produktionsplanung.

Alle Berechnungen arbeiten auf reinen Kalendertagen (datetime.date) ohne
Uhrzeit und ohne Sommerzeit-Korrektur. Wochen beginnen am Montag; Wochentage
werden wie bei date.weekday() nummeriert (0=Montag, 6=Sonntag). Dieselbe
Nummerierung gilt für die Liefertage von Daueraufträgen.
"""
from datetime import date, timedelta
from typing import Iterable, Iterator

ISO_DATE_FORMAT = "%Y-%m-%d"


def add_days(day: date, days: int) -> date:
    """Verschiebt ein Datum um n Kalendertage (negativ = zurück)"""
    return day + timedelta(days=days)


def days_between(start: date, end: date) -> int:
    return (end - start).days


def week_bounds(day: date) -> tuple[date, date]:
    """Montag und Sonntag der Woche, in der das Datum liegt"""
    start = day - timedelta(days=day.weekday())
    return start, start + timedelta(days=6)


def month_bounds(day: date) -> tuple[date, date]:
    """Erster und letzter Tag des Monats"""
    start = day.replace(day=1)
    if start.month == 12:
        next_month = start.replace(year=start.year + 1, month=1)
    else:
        next_month = start.replace(month=start.month + 1)
    return start, next_month - timedelta(days=1)


def format_iso_date(day: date) -> str:
    """Kanonische Darstellung yyyy-MM-dd für Vergleiche und Gruppierung"""
    return day.strftime(ISO_DATE_FORMAT)


def parse_iso_date(value: str) -> date:
    return date.fromisoformat(value)


def is_delivery_day(day: date, delivery_days: Iterable[int]) -> bool:
    """Prüft ob der Wochentag des Datums in den Liefertagen enthalten ist"""
    return day.weekday() in set(delivery_days)


def date_range(start: date, end: date) -> Iterator[date]:
    """Alle Tage von start bis einschließlich end"""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
