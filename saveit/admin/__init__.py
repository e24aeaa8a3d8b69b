"""
SaveIt.AI admin - cross-user dashboard and record deletion.
"""
