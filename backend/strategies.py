"""
Strategy Builder
Rule-based strategy data model, indicator/operator catalogue, rule-group editing and templates.
Editing helpers never mutate their input; they return new lists.
"""
import uuid
from dataclasses import dataclass, field, asdict, replace
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

AND = 'AND'
OR = 'OR'
LOGICAL_OPERATORS = (AND, OR)

ASSET_CLASSES = ('stocks', 'forex', 'crypto', 'futures', 'options')
TIMEFRAMES = ('intraday', 'swing', 'position')
STRATEGY_TYPES = ('momentum', 'mean-reversion', 'breakout', 'trend-following', 'volatility', 'custom')
COMPLEXITIES = ('beginner', 'intermediate', 'advanced')


class StrategyValidationError(ValueError):
    """Strategy or rule is not consistent with the indicator catalogue"""


class TemplateNotFoundError(LookupError):
    """No template with the requested id"""


def new_id() -> str:
    return str(uuid.uuid4())


@dataclass
class Rule:
    id: str
    indicator: str
    operator: str
    value: Union[float, str]
    parameter: Optional[float] = None
    timeframe: Optional[str] = None


@dataclass
class RuleGroup:
    id: str
    name: str
    rules: List[Rule] = field(default_factory=list)
    logical_operator: str = AND


@dataclass
class MarketCondition:
    id: str
    name: str
    description: str
    indicator: str
    operator: str
    value: Union[float, str]


@dataclass
class RiskParameters:
    max_position_size: float = 5
    max_risk_per_trade: float = 1
    target_risk_reward: float = 2
    stop_loss_type: str = 'fixed'  # fixed, atr-based, volatility-based, support/resistance
    stop_loss_value: float = 0
    take_profit_type: str = 'fixed'  # fixed, atr-based, volatility-based, resistance/support
    take_profit_value: float = 0


@dataclass
class Strategy:
    id: str
    name: str
    description: str = ''
    type: str = 'custom'
    asset_classes: List[str] = field(default_factory=list)
    timeframes: List[str] = field(default_factory=list)
    complexity: str = 'beginner'
    entry_rules: List[RuleGroup] = field(default_factory=list)
    exit_rules: List[RuleGroup] = field(default_factory=list)
    market_conditions: List[MarketCondition] = field(default_factory=list)
    risk_parameters: RiskParameters = field(default_factory=RiskParameters)
    notes: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['created_at'] = self.created_at.isoformat()
        data['updated_at'] = self.updated_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Strategy':
        data = dict(data)

        def groups(raw):
            return [
                RuleGroup(**{**g, 'rules': [Rule(**r) for r in g.get('rules', [])]})
                for g in raw or []
            ]

        data['entry_rules'] = groups(data.get('entry_rules'))
        data['exit_rules'] = groups(data.get('exit_rules'))
        data['market_conditions'] = [MarketCondition(**c) for c in data.get('market_conditions') or []]
        data['risk_parameters'] = RiskParameters(**(data.get('risk_parameters') or {}))
        for key in ('created_at', 'updated_at'):
            if isinstance(data.get(key), str):
                data[key] = datetime.fromisoformat(data[key])
            elif data.get(key) is None:
                data.pop(key, None)
        return cls(**data)


# ---------------------------------------------------------------------------
# Indicator / operator catalogue
# ---------------------------------------------------------------------------

INDICATOR_OPTIONS: List[Dict[str, Any]] = [
    {'value': 'sma', 'label': 'Simple Moving Average (SMA)',
     'description': 'Average price over a specific period', 'category': 'trend',
     'parameters': [{'name': 'period', 'default_value': 20, 'min': 1, 'max': 200}]},
    {'value': 'ema', 'label': 'Exponential Moving Average (EMA)',
     'description': 'Weighted average price with more emphasis on recent prices', 'category': 'trend',
     'parameters': [{'name': 'period', 'default_value': 20, 'min': 1, 'max': 200}]},
    {'value': 'macd', 'label': 'MACD',
     'description': 'Moving Average Convergence Divergence', 'category': 'momentum',
     'parameters': [
         {'name': 'fast period', 'default_value': 12, 'min': 1, 'max': 50},
         {'name': 'slow period', 'default_value': 26, 'min': 1, 'max': 100},
         {'name': 'signal period', 'default_value': 9, 'min': 1, 'max': 50},
     ]},
    {'value': 'rsi', 'label': 'Relative Strength Index (RSI)',
     'description': 'Momentum oscillator measuring speed and change of price movements', 'category': 'momentum',
     'parameters': [{'name': 'period', 'default_value': 14, 'min': 1, 'max': 50}]},
    {'value': 'bollinger', 'label': 'Bollinger Bands',
     'description': 'Volatility bands placed above and below a moving average', 'category': 'volatility',
     'parameters': [
         {'name': 'period', 'default_value': 20, 'min': 1, 'max': 100},
         {'name': 'std dev', 'default_value': 2, 'min': 0.5, 'max': 5},
     ]},
    {'value': 'atr', 'label': 'Average True Range (ATR)',
     'description': 'Market volatility indicator', 'category': 'volatility',
     'parameters': [{'name': 'period', 'default_value': 14, 'min': 1, 'max': 50}]},
    {'value': 'volume', 'label': 'Volume', 'description': 'Trading volume', 'category': 'volume'},
    {'value': 'obv', 'label': 'On-Balance Volume (OBV)',
     'description': 'Momentum indicator that uses volume flow', 'category': 'volume'},
    {'value': 'support', 'label': 'Support Level',
     'description': 'Price level where downward movement tends to halt', 'category': 'support/resistance'},
    {'value': 'resistance', 'label': 'Resistance Level',
     'description': 'Price level where upward movement tends to halt', 'category': 'support/resistance'},
    {'value': 'price', 'label': 'Price', 'description': 'Current market price', 'category': 'custom'},
    {'value': 'candlestick', 'label': 'Candlestick Pattern',
     'description': 'Specific candlestick formations', 'category': 'custom'},
]

OPERATOR_OPTIONS: Dict[str, List[str]] = {
    'default': ['>', '<', '>=', '<=', '=='],
    'oscillator': ['>', '<', '>=', '<=', '==', 'crosses above', 'crosses below', 'is above', 'is below'],
    'moving_average': ['crosses above', 'crosses below', 'is above', 'is below'],
    'price': ['>', '<', '>=', '<=', '=='],
    'pattern': ['=='],
}

INDICATOR_OPERATOR_MAPPING: Dict[str, str] = {
    'sma': 'moving_average',
    'ema': 'moving_average',
    'macd': 'oscillator',
    'rsi': 'oscillator',
    'bollinger': 'oscillator',
    'atr': 'default',
    'volume': 'default',
    'obv': 'default',
    'support': 'price',
    'resistance': 'price',
    'price': 'price',
    'candlestick': 'pattern',
}

KNOWN_INDICATORS = {option['value'] for option in INDICATOR_OPTIONS}


def operators_for_indicator(indicator: str) -> List[str]:
    """Operators the rule builder offers for an indicator"""
    operator_type = INDICATOR_OPERATOR_MAPPING.get(indicator, 'default')
    return list(OPERATOR_OPTIONS[operator_type])


def get_indicator_details(indicator: str) -> Optional[Dict[str, Any]]:
    return next((option for option in INDICATOR_OPTIONS if option['value'] == indicator), None)


# ---------------------------------------------------------------------------
# Rule-group editing
# ---------------------------------------------------------------------------

def blank_rule() -> Rule:
    return Rule(id=new_id(), indicator='', operator='>', value='')


def add_rule(groups: List[RuleGroup], group_id: str) -> List[RuleGroup]:
    return [
        replace(g, rules=g.rules + [blank_rule()]) if g.id == group_id else g
        for g in groups
    ]


def delete_rule(groups: List[RuleGroup], group_id: str, rule_id: str) -> List[RuleGroup]:
    return [
        replace(g, rules=[r for r in g.rules if r.id != rule_id]) if g.id == group_id else g
        for g in groups
    ]


def add_group(groups: List[RuleGroup]) -> List[RuleGroup]:
    group = RuleGroup(id=new_id(), name=f"Group {len(groups) + 1}", rules=[blank_rule()], logical_operator=AND)
    return groups + [group]


def delete_group(groups: List[RuleGroup], group_id: str) -> List[RuleGroup]:
    return [g for g in groups if g.id != group_id]


def update_rule(groups: List[RuleGroup], group_id: str, rule_id: str, field_name: str, value) -> List[RuleGroup]:
    """Set one field of a rule; a new indicator resets the operator to its first allowed one"""
    def updated(rule: Rule) -> Rule:
        changes = {field_name: value}
        if field_name == 'indicator':
            changes['operator'] = operators_for_indicator(value)[0]
        return replace(rule, **changes)

    return [
        replace(g, rules=[updated(r) if r.id == rule_id else r for r in g.rules]) if g.id == group_id else g
        for g in groups
    ]


def set_logical_operator(groups: List[RuleGroup], group_id: str, operator: str) -> List[RuleGroup]:
    if operator not in LOGICAL_OPERATORS:
        raise StrategyValidationError(f"Logical operator must be AND or OR, got {operator!r}")
    return [replace(g, logical_operator=operator) if g.id == group_id else g for g in groups]


def _validate_rule(rule: Rule, where: str):
    if not isinstance(rule.indicator, str) or not isinstance(rule.operator, str):
        raise StrategyValidationError(f"{where}: indicator and operator must be strings")
    # Freshly added rules have no indicator yet
    if rule.indicator == '':
        return
    if rule.indicator not in KNOWN_INDICATORS:
        raise StrategyValidationError(f"{where}: unknown indicator {rule.indicator!r}")
    allowed = operators_for_indicator(rule.indicator)
    if rule.operator not in allowed:
        raise StrategyValidationError(
            f"{where}: operator {rule.operator!r} not allowed for {rule.indicator!r} (allowed: {', '.join(allowed)})"
        )


def _check_choice(label: str, value, choices):
    if value not in choices:
        raise StrategyValidationError(f"Invalid {label} {value!r} (expected one of: {', '.join(choices)})")


def validate_strategy(strategy: Strategy):
    """Raise StrategyValidationError if the strategy cannot be saved"""
    if not strategy.name or not strategy.name.strip():
        raise StrategyValidationError("Strategy name is required")

    _check_choice('strategy type', strategy.type, STRATEGY_TYPES)
    _check_choice('complexity', strategy.complexity, COMPLEXITIES)
    for asset_class in strategy.asset_classes:
        _check_choice('asset class', asset_class, ASSET_CLASSES)
    for timeframe in strategy.timeframes:
        _check_choice('timeframe', timeframe, TIMEFRAMES)

    for kind, groups in (('entry', strategy.entry_rules), ('exit', strategy.exit_rules)):
        for group in groups:
            if group.logical_operator not in LOGICAL_OPERATORS:
                raise StrategyValidationError(f"{kind} group {group.name!r}: invalid logical operator")
            for rule in group.rules:
                _validate_rule(rule, f"{kind} group {group.name!r}")

    for condition in strategy.market_conditions:
        _validate_rule(
            Rule(id=condition.id, indicator=condition.indicator, operator=condition.operator, value=condition.value),
            f"market condition {condition.name!r}",
        )


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

STRATEGY_TEMPLATES: List[Dict[str, Any]] = [
    {
        'id': 'template-1',
        'name': 'Simple Moving Average Crossover',
        'description': 'A classic trend-following strategy that uses the crossover of two moving averages to identify trend changes.',
        'type': 'trend-following',
        'asset_classes': ['stocks', 'forex', 'futures'],
        'complexity': 'beginner',
        'timeframes': ['swing', 'position'],
        'entry_rules': [
            'Fast MA (20-period) crosses above Slow MA (50-period) for Long',
            'Fast MA (20-period) crosses below Slow MA (50-period) for Short',
        ],
        'exit_rules': [
            'Fast MA crosses back below Slow MA for Long positions',
            'Fast MA crosses back above Slow MA for Short positions',
            'Fixed profit target or stop loss reached',
        ],
        'risk_parameters': {'max_risk_per_trade': 1, 'target_risk_reward': 2},
    },
    {
        'id': 'template-2',
        'name': 'RSI Mean Reversion',
        'description': 'A mean reversion strategy that looks for overbought and oversold conditions using the Relative Strength Index.',
        'type': 'mean-reversion',
        'asset_classes': ['stocks', 'forex'],
        'complexity': 'intermediate',
        'timeframes': ['intraday', 'swing'],
        'entry_rules': [
            'RSI below 30 for Long positions',
            'RSI above 70 for Short positions',
            'Wait for RSI to turn (confirm reversal)',
        ],
        'exit_rules': [
            'RSI crosses above 50 for Long positions',
            'RSI crosses below 50 for Short positions',
            'Fixed stop loss or time-based exit',
        ],
        'risk_parameters': {'max_risk_per_trade': 1.5, 'target_risk_reward': 1.5},
    },
    {
        'id': 'template-3',
        'name': 'Breakout with Volume Confirmation',
        'description': 'A breakout strategy that uses volume confirmation to identify valid breakouts from consolidation patterns.',
        'type': 'breakout',
        'asset_classes': ['stocks', 'futures'],
        'complexity': 'intermediate',
        'timeframes': ['intraday', 'swing'],
        'entry_rules': [
            'Price breaks above resistance with 20% or more increase in volume',
            'Price breaks below support with 20% or more increase in volume',
            'Enter on the close of the breakout candle',
        ],
        'exit_rules': [
            'Price reaches measured move target (height of pattern)',
            'Price closes back inside the pattern (failure)',
            'Trailing stop after partial profit taken',
        ],
        'risk_parameters': {'max_risk_per_trade': 1, 'target_risk_reward': 2.5},
    },
    {
        'id': 'template-4',
        'name': 'Momentum with MACD Confirmation',
        'description': 'A momentum strategy that uses MACD to confirm trend direction and momentum.',
        'type': 'momentum',
        'asset_classes': ['stocks', 'crypto', 'futures'],
        'complexity': 'intermediate',
        'timeframes': ['swing'],
        'entry_rules': [
            'Price making higher highs and higher lows',
            'MACD line crosses above signal line',
            'MACD histogram increasing',
        ],
        'exit_rules': [
            'MACD line crosses below signal line',
            'Price makes a lower low',
            'Trailing stop or fixed profit target',
        ],
        'risk_parameters': {'max_risk_per_trade': 1.5, 'target_risk_reward': 2},
    },
    {
        'id': 'template-5',
        'name': 'Volatility Breakout (Bollinger Bands)',
        'description': 'A volatility-based strategy that trades breakouts from periods of low volatility.',
        'type': 'volatility',
        'asset_classes': ['forex', 'futures', 'crypto'],
        'complexity': 'advanced',
        'timeframes': ['intraday', 'swing'],
        'entry_rules': [
            'Bollinger Band width contracts to recent lows (low volatility)',
            'Price breaks outside the bands with strong momentum',
            'Enter in the direction of the breakout',
        ],
        'exit_rules': [
            'Price reaches twice the average daily range',
            'Price reverses and crosses the opposite band',
            'Time-based exit or trailing stop',
        ],
        'risk_parameters': {'max_risk_per_trade': 1, 'target_risk_reward': 3},
    },
]


def get_template(template_id: str) -> Dict[str, Any]:
    for template in STRATEGY_TEMPLATES:
        if template['id'] == template_id:
            return template
    raise TemplateNotFoundError(f"Template not found: {template_id}")


def strategy_from_template(template_id: str) -> Strategy:
    """
    Start a new strategy from a template.

    Template rules are free text, so each becomes a `price` rule carrying the text
    as its value for the user to edit (entry rules with `>`, exit rules with `<`).
    """
    template = get_template(template_id)

    def group(name: str, texts: List[str], operator: str) -> RuleGroup:
        return RuleGroup(
            id=new_id(),
            name=name,
            rules=[Rule(id=new_id(), indicator='price', operator=operator, value=text) for text in texts],
            logical_operator=AND,
        )

    return Strategy(
        id=new_id(),
        name=template['name'],
        description=template['description'],
        type=template['type'],
        asset_classes=list(template['asset_classes']),
        timeframes=list(template['timeframes']),
        complexity=template['complexity'],
        entry_rules=[group('Template Entry Rules', template['entry_rules'], '>')],
        exit_rules=[group('Template Exit Rules', template['exit_rules'], '<')],
        market_conditions=[],
        risk_parameters=RiskParameters(
            max_position_size=5,
            max_risk_per_trade=template['risk_parameters']['max_risk_per_trade'],
            target_risk_reward=template['risk_parameters']['target_risk_reward'],
        ),
    )
