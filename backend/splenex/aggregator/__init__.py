"""Quote aggregation: intent validation, fan-out, selection and result assembly."""
