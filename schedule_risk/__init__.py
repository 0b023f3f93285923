"""Schedule risk analysis: Monte Carlo simulation of project completion dates and cost."""
