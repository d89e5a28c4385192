"""Book Recommendation API: a fixed book catalog served over HTTP with ranked recommendations."""
