"""Aurelia shared layer: lead scoring, VIP detection and alerting."""
