"""Tests for configuration validation utilities."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Dict

sys.path.append(str(Path(__file__).resolve().parents[1]))

from config_validation import validate_configuration


def build_settings(**overrides: Dict[str, object]):
    settings = {
        'max_integer_digits': 9,
        'max_fraction_digits': 6,
        'auto_hide_seconds': 30,
        'application_dir': '/opt/panel/data',
        'log_retention': 30,
    }
    settings.update(overrides)
    return settings


def validate_single_issue(settings, field):
    issues = validate_configuration(settings)
    assert issues, "Expected at least one validation issue"
    assert issues[0].field == field
    return issues[0]


def test_valid_configuration_passes():
    assert validate_configuration(build_settings()) == []


def test_numeric_strings_are_accepted():
    settings = build_settings(max_integer_digits='7', log_retention=' 60 ')
    assert validate_configuration(settings) == []


def test_integer_digits_must_be_positive():
    issue = validate_single_issue(build_settings(max_integer_digits=0), 'max_integer_digits')
    assert 'between 1 and 15' in issue.message


def test_booleans_are_not_numbers():
    issue = validate_single_issue(build_settings(max_fraction_digits=True), 'max_fraction_digits')
    assert issue.title == 'Fraction Digits Invalid'


def test_combined_digits_are_limited():
    issue = validate_single_issue(
        build_settings(max_integer_digits=12, max_fraction_digits=4), 'max_fraction_digits'
    )
    assert 'cannot exceed 15' in issue.message


def test_auto_hide_range_enforced():
    issue = validate_single_issue(build_settings(auto_hide_seconds=1), 'auto_hide_seconds')
    assert 'between 5 and 600 seconds' in issue.message


def test_log_retention_range_enforced():
    issue = validate_single_issue(build_settings(log_retention=2), 'log_retention')
    assert 'between 7 and 365 days' in issue.message


def test_application_dir_required():
    issue = validate_single_issue(build_settings(application_dir='  '), 'application_dir')
    assert 'embedded databases' in issue.message
