"""
Checks against a real ISSDA CER data folder.

Set CER_DIR to the folder holding data/ and weather/ to run these;
they are skipped otherwise. Only a single month is read to keep memory
use modest.
"""

import os
from pathlib import Path

import polars as pl
import pytest

from cersmartmeter.pipelines.cache import TableCache
from cersmartmeter.pipelines.get_cer import get_cer
from cersmartmeter.pipelines.report import RowLossReport

CER_DIR = os.environ.get("CER_DIR")

pytestmark = pytest.mark.skipif(
    not CER_DIR or not (Path(CER_DIR).expanduser() / "data").is_dir(),
    reason="CER_DIR not set or has no data/ folder",
)


@pytest.fixture(scope="module")
def cache():
    return TableCache()


def test_calendar_covers_study(cache):
    """Calendar codes follow day_cer * 100 + hour_cer"""
    print("\n" + "=" * 80)
    print("TEST: calendar")
    print("=" * 80)

    get_cer(CER_DIR, years=[2009], months=[8], cache=cache)
    calendar = cache.get("calendar")

    assert calendar["day_cer"].min() > 194
    assert (calendar["date_cer"] == calendar["day_cer"] * 100 + calendar["hour_cer"]).all()
    assert set(calendar["minute"].unique().to_list()) == {29, 59}
    print(f"[OK] {len(calendar):,} intervals, {calendar['week_of_study'].max()} study weeks")


def test_kwh_august_2009(cache):
    """kWh for one month, restricted while reading"""
    print("\n" + "=" * 80)
    print("TEST: get_cer(only_kwh=True, years=[2009], months=[8])")
    print("=" * 80)

    cer_df = get_cer(CER_DIR, years=[2009], months=[8], cache=cache)

    august = cache.get("calendar").filter(
        (pl.col("year") == 2009) & (pl.col("month") == 8)
    )
    assert cer_df["date_cer"].is_in(august["date_cer"]).all()
    assert (cer_df["kwh"] == cer_df["kw"] * 0.5).all()
    print(f"[OK] {len(cer_df):,} readings for {cer_df['id'].n_unique():,} households")


def test_full_merge_august_2009(cache):
    """Full merge for one month, with row-loss bookkeeping"""
    print("\n" + "=" * 80)
    print("TEST: get_cer(only_kwh=False, years=[2009], months=[8])")
    print("=" * 80)

    report = RowLossReport()
    cer_df = get_cer(CER_DIR, only_kwh=False, years=[2009], months=[8], cache=cache, report=report)

    assert cer_df["tar_stim"].null_count() < len(cer_df)
    dummies = cer_df.select(
        pl.sum_horizontal("d_home_age_10orless", "d_home_age_11to30", "d_home_age_31ormore")
    ).to_series()
    assert dummies.drop_nulls().is_in([0, 1]).all()

    for step, before, after, dropped in report.to_frame().rows():
        print(f"[OK] {step}: {before:,} -> {after:,} ({dropped:,} dropped)")
