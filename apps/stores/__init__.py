"""
Stores App - reference data for the point of sale

Stores carry the pricing rates (tax, service charge, rounding unit) that the
cart pricing engine applies. Registers, customers and products belong to
exactly one store; checkout validates every reference against it.
"""
