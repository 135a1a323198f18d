"""
Test suite for the style engine.

Test modules:
- test_aggregator.py: profile learning (decay, sign, clamp, replay)
- test_ranking.py / test_candidates.py: pool selection and ordering
- test_engine.py: the full shuffle loop
- test_style_store.py / test_api.py: persistence adapter and HTTP surface
"""
