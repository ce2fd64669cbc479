"""Route modules mounted by viralbites.main."""
