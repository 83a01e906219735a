"""HTTP service translating the internal API into RCS platform calls."""
