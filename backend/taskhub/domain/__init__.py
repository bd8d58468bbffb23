"""Pure domain layer: records, rules, authorization and errors."""
