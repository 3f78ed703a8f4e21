"""Facebook Page engagement dashboard."""
