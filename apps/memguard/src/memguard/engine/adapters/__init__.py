"""
Engine Adapters

外部协作方的传输适配层。
"""
