"""Routing: ordered route table with first-match-wins lookup.

Templates are compiled once when a ``RouteDefinition`` is created;
``RouteTable.match`` walks the entries in registration order.
"""
