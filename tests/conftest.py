from hypothesis import HealthCheck, settings

# Hypothesis builds its unicode charmap cache on first use, which can trip the
# too_slow health check on a cold run; the check is about timing, not behavior.
settings.register_profile("default", suppress_health_check=[HealthCheck.too_slow])
settings.load_profile("default")
