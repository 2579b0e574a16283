"""User-user collaborative filtering over a static rating matrix.

- RatingStore: immutable user x item ratings with id <-> index maps
- SimilarityEngine: Pearson correlation over co-rated items (global-mean centering)
- Predictor: positive-similarity weighted estimate, item-average / neutral fallback
- Recommender: top-N unrated items per user
- Evaluator: RMSE over known ratings (leave-one-out by default)
"""
