"""Sport news service: news CRUD, read-through cache, confirmation consumer"""
