"""Order settlement and commission engine."""
