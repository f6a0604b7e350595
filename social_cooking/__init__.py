"""
Social Cooking Event Orchestrator

複数人で進めるソーシャルクッキングイベントの調整システム:
- Sunday Roast（メニュー投票）
- Party Mode（メニュー決定と調理担当の割り当て）
- Dutch Prep（ポットラック形式の料理持ち寄りボード）
"""

__version__ = "0.1.0"
