"""
例外定義

リポジトリ層の例外と、オーケストレーターが操作境界で結果型に変換する業務例外。
"""


class SocialCookingError(Exception):
    """ソーシャルクッキング例外基底クラス"""
    pass


# リポジトリ層

class RepositoryError(SocialCookingError):
    """リポジトリエラー基底クラス"""
    pass


class DocumentNotFoundError(RepositoryError):
    """ドキュメント未発見エラー"""
    pass


class ConditionFailedError(RepositoryError):
    """条件付き更新の前提条件不一致エラー"""
    pass


class EncryptionError(RepositoryError):
    """暗号化エラー"""
    pass


# オーケストレーター層

class ValidationError(SocialCookingError):
    """必須項目の未入力など、状態を進める前の検証エラー"""
    pass


class NoActiveEventError(SocialCookingError):
    """アクティブなイベントがない状態での操作"""
    pass


class InvalidPhaseError(SocialCookingError):
    """イベントタイプ・フェーズに合わない操作"""
    pass


class IllegalTransitionError(SocialCookingError):
    """許可されていないステータス遷移"""
    pass


class RecordNotFoundError(SocialCookingError):
    """プロジェクション内に対象レコードがない"""
    pass


class ClaimConflictError(SocialCookingError):
    """料理の担当が既に決まっている"""
    pass
