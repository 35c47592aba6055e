"""User service: users, registered-object counter, creation-event consumer"""
