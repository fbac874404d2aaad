"""Fetch and resample price history for every chart range.

Prints, for each range, the number of points and the non-empty labels that a
chart would show on its x-axis.

Args:
    None: The script is intended to be executed directly.

Returns:
    None: Outputs series summaries to stdout.
"""

import sys

sys.path.append("./src")


from crypto_tracker import TimeSeriesResampler
from crypto_tracker.config import SAMPLING_PLANS
from crypto_tracker.downloader import run

resampler = TimeSeriesResampler()
for range_name in SAMPLING_PLANS:
    series = run(resampler.resample("BTC", range_name))
    print(range_name, len(series), "points :", [label for label in series.labels if label])
print("BTC now :", run(resampler.current_price("BTC")))
