"""Scanner pipeline stages: configuration, dispatch, filtering, and conversion."""
