"""Brand Visibility Extraction & Metrics Aggregation Engine.

Pipeline for turning raw answer-engine responses into ranked brand metrics:
  1. Text Preprocessor
  2. Sentence Segmenter
  3. Brand Mention Detector
  4. Citation Extractor
  5. Citation Classifier
  6. Sentiment Classifier
  7. Response Scorer
  8. Scope Aggregator

Input:  RawResponse + BrandCandidate list
Output: BrandResponseScore per (response, brand), then ScopeMetrics per scope
"""
