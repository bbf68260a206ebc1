"""
Line Watch - temporal odds snapshots and sharp-money detection.

Tracks betting-market lines over the course of a day and flags the two
classic "sharp money" tells:
- Reverse line movement (RLM): the line moves against the side getting
  the majority of (estimated) public money
- Steam moves: the line jumps 1.5+ points between captures

Layout:
- feeds/: Upstream market data (The Odds API, offline demo feed)
- engine/: Normalizer, public-money estimator, sharp-action detector, alerts
- storage/: Date/category partitioned snapshot files
- ingest.py: Scheduled snapshot job
- query.py: Live vs snapshot query routing for the display layer
"""

__version__ = "0.1.0"
