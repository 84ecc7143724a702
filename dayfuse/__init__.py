"""DayFuse task reminders: client reminder engine and Web Push relay service."""
