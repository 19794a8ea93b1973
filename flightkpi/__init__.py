"""FlightKPI backend: predicted vs. actual flight trajectory KPIs."""
