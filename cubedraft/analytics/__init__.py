from cubedraft.analytics.aggregator import adjust_elo, expected_score, fold

__all__ = ["adjust_elo", "expected_score", "fold"]
